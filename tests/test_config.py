"""Tests for the sgpjax.config module."""

import jax
import jax.numpy as jnp
import pytest

from sgpjax.config import (
    get_deep_space_period,
    get_default_gravity,
    get_dtype,
    set_deep_space_period,
    set_default_gravity,
    set_dtype,
)

pytestmark = pytest.mark.order("first")


@pytest.fixture(autouse=True)
def reset_dtype():
    """Reset dtype to float32 before each test and back to float64 after."""
    set_dtype(jnp.float32)
    yield
    set_dtype(jnp.float64)


class TestGetSetDtype:
    def test_set_float32(self):
        assert get_dtype() == jnp.float32

    def test_set_float64(self):
        set_dtype(jnp.float64)
        assert get_dtype() == jnp.float64

    def test_float64_enables_x64(self):
        set_dtype(jnp.float64)
        assert jax.config.jax_enable_x64

    def test_roundtrip(self):
        for dtype in (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64):
            set_dtype(dtype)
            assert get_dtype() == dtype

    def test_invalid_dtype_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype(jnp.int32)

    def test_invalid_dtype_string_raises(self):
        with pytest.raises(ValueError, match="Unsupported dtype"):
            set_dtype("float32")


class TestDefaultGravity:
    def test_default_is_wgs72(self):
        assert get_default_gravity() == "wgs72"

    def test_set_wgs84(self):
        set_default_gravity("wgs84")
        assert get_default_gravity() == "wgs84"

    def test_set_wgs72old(self):
        set_default_gravity("wgs72old")
        assert get_default_gravity() == "wgs72old"

    @pytest.mark.parametrize(
        "alias, expected", [("721", "wgs72old"), ("72", "wgs72"), ("84", "wgs84"), ("WGS72", "wgs72")]
    )
    def test_aliases_are_normalised(self, alias, expected):
        set_default_gravity(alias)
        assert get_default_gravity() == expected

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown gravity model"):
            set_default_gravity("egm96")
        assert get_default_gravity() == "wgs72"


class TestDeepSpacePeriod:
    def test_default(self):
        assert get_deep_space_period() == 225.0

    def test_set(self):
        set_deep_space_period(300)
        assert get_deep_space_period() == 300.0
        assert isinstance(get_deep_space_period(), float)

    @pytest.mark.parametrize("value", [0.0, -10.0])
    def test_non_positive_raises(self, value):
        with pytest.raises(ValueError, match="must be positive"):
            set_deep_space_period(value)
        assert get_deep_space_period() == 225.0


class TestDtypeOutputs:
    """Propagation outputs follow the configured dtype."""

    @pytest.mark.parametrize("model", ["unified", "near-earth-precise"])
    def test_float32_state(self, iss, model):
        sv = iss.propagate(model, 30.0)
        assert sv.position.dtype == jnp.float32
        assert sv.velocity.dtype == jnp.float32
        assert jnp.all(jnp.isfinite(sv.position))

    def test_float64_state(self, iss):
        set_dtype(jnp.float64)
        sv = iss.propagate("unified", 30.0)
        assert sv.position.dtype == jnp.float64

    def test_noop_dtype(self, iss):
        assert iss.propagate("no-op", 0.0).position.dtype == jnp.float32

    def test_precisions_agree_coarsely(self, iss):
        low = iss.propagate("unified", 30.0).position
        set_dtype(jnp.float64)
        # Any model-field assignment re-initializes at the new dtype
        iss.bstar = iss.bstar
        high = iss.propagate("unified", 30.0).position
        assert high.dtype == jnp.float64
        assert jnp.allclose(low.astype(jnp.float64), high, atol=1.0)
