"""Tests for the unified model, status handling and meta-model dispatch."""

import logging
import math
from datetime import datetime

import jax.numpy as jnp
import pytest
from conftest import (
    GEO_LINE1,
    GEO_LINE2,
    ISS_LINE1,
    ISS_LINE2,
    LOWI_LINE1,
    LOWI_LINE2,
    MOLNIYA_LINE1,
    MOLNIYA_LINE2,
    STR3_LINE1,
    STR3_LINE2,
    reference_state,
)
from sgp4.api import WGS72OLD as SGP4_WGS72OLD
from sgp4.api import WGS84 as SGP4_WGS84

from sgpjax import MODEL_NAMES, ElementSet, PropagationStatus, resolve_model
from sgpjax.errors import BadElements, ModelError
from sgpjax.models._constants import WGS72
from sgpjax.models._unified import unified_init

FORWARD = [0.0, 360.0, 720.0, 1440.0, 2880.0]
BOTH_WAYS = [-1440.0, -360.0, 0.0, 360.0, 1440.0, 2880.0]

CASES = [
    ("iss", ISS_LINE1, ISS_LINE2, FORWARD),
    ("str3", STR3_LINE1, STR3_LINE2, [0.0, 360.0, 720.0, 1080.0, 1440.0]),
    ("low_inclination", LOWI_LINE1, LOWI_LINE2, FORWARD),
    ("molniya", MOLNIYA_LINE1, MOLNIYA_LINE2, BOTH_WAYS),
    ("geo", GEO_LINE1, GEO_LINE2, BOTH_WAYS),
]


def _assert_matches(sv, line1, line2, tsince, gravity=None) -> None:
    if gravity is None:
        e_ref, r_ref, v_ref = reference_state(line1, line2, tsince)
    else:
        e_ref, r_ref, v_ref = reference_state(line1, line2, tsince, gravity)
    assert e_ref == 0
    assert jnp.allclose(sv.position, jnp.array(r_ref), atol=1e-5)
    assert jnp.allclose(sv.velocity, jnp.array(v_ref), atol=1e-8)


class TestAgainstReference:
    @pytest.mark.parametrize("fixture, line1, line2, times", CASES, ids=[c[0] for c in CASES])
    def test_wgs72(self, request, fixture, line1, line2, times) -> None:
        elements = request.getfixturevalue(fixture)
        for tsince in times:
            _assert_matches(elements.propagate("unified", tsince), line1, line2, tsince)

    def test_wgs84(self, iss) -> None:
        iss.gravity = "wgs84"
        for tsince in (0.0, 720.0):
            _assert_matches(iss.propagate("unified", tsince), ISS_LINE1, ISS_LINE2, tsince, SGP4_WGS84)

    def test_wgs72old(self, molniya) -> None:
        molniya.gravity = "wgs72old"
        for tsince in (0.0, 720.0):
            sv = molniya.propagate("unified", tsince)
            _assert_matches(sv, MOLNIYA_LINE1, MOLNIYA_LINE2, tsince, SGP4_WGS72OLD)

    def test_deep_calls_are_order_independent(self, molniya) -> None:
        late = molniya.propagate("unified", 2880.0)
        molniya.propagate("unified", -720.0)
        molniya.propagate("unified", 100.0)
        again = molniya.propagate("unified", 2880.0)
        assert jnp.array_equal(late.position, again.position)


class TestInitialization:
    def test_near_earth(self, iss) -> None:
        p, ds = unified_init(iss.mean_elements())
        assert ds is None
        assert p.deep == 0.0
        assert p.init_status == 0.0

    def test_deep_space(self, molniya) -> None:
        p, ds = unified_init(molniya.mean_elements())
        assert ds is not None
        assert p.deep == 1.0
        assert p.isimp == 1.0
        assert ds.irez == 2.0

    def test_threshold_argument(self, iss) -> None:
        _, ds = unified_init(iss.mean_elements(), WGS72, deep_threshold=90.0)
        assert ds is not None

    def test_rejects_bad_eccentricity(self, iss) -> None:
        iss.eccentricity = 1.0
        with pytest.raises(BadElements, match="25544"):
            unified_init(iss.mean_elements(), catalog_number=25544)


class TestStatus:
    @pytest.mark.parametrize("mean_motion", [-0.01, 0.0])
    def test_mean_motion_checked_first(self, iss, mean_motion) -> None:
        iss.mean_motion = mean_motion
        with pytest.raises(ModelError) as excinfo:
            iss.propagate("unified", 0.0)
        assert excinfo.value.status is PropagationStatus.MEAN_MOTION
        assert iss._cache == {}

    def test_meta_model_mean_motion(self, iss) -> None:
        iss.mean_motion = 0.0
        with pytest.raises(ModelError):
            iss.propagate("model", 0.0)

    def test_legacy_models_reject_negative_mean_motion(self, iss) -> None:
        iss.mean_motion = -0.01
        with pytest.raises(BadElements):
            iss.propagate("near-earth-precise", 0.0)

    def test_drag_collapse_is_fatal(self, str3) -> None:
        p, _ = unified_init(str3.mean_elements())
        tsince = 1.0 / p.cc1
        with pytest.raises(ModelError) as excinfo:
            str3.propagate("unified", tsince)
        err = excinfo.value
        assert err.status is PropagationStatus.MEAN_ELEMENTS
        assert err.model == "unified"
        assert err.catalog_number == 88888
        assert err.tsince == tsince

    def test_decay_is_reported(self, caplog) -> None:
        elements = ElementSet(
            epoch=datetime(2020, 1, 1),
            mean_motion=0.0722,
            eccentricity=0.05,
            inclination=0.9,
            raan=0.0,
            arg_perigee=0.0,
            mean_anomaly=0.0,
            catalog_number=99999,
        )
        with caplog.at_level(logging.WARNING, logger="sgpjax"):
            sv = elements.propagate("unified", 0.0)
        assert sv.status is PropagationStatus.DECAYED
        assert jnp.all(jnp.isfinite(sv.position))
        messages = [record.getMessage() for record in caplog.records]
        assert any("sub-orbital" in m for m in messages)
        assert any("decayed" in m for m in messages)
        assert elements._cache["unified"].params.init_status == 5.0

    def test_suborbital_is_reported(self, caplog) -> None:
        elements = ElementSet(
            epoch=datetime(2020, 1, 1),
            mean_motion=0.0555,
            eccentricity=0.2,
            inclination=0.9,
            raan=0.0,
            arg_perigee=0.0,
            mean_anomaly=math.pi,
            catalog_number=99998,
        )
        with caplog.at_level(logging.WARNING, logger="sgpjax"):
            sv = elements.propagate("unified", 0.0)
        assert sv.status is PropagationStatus.SUBORBITAL
        assert jnp.all(jnp.isfinite(sv.position))
        messages = [record.getMessage() for record in caplog.records]
        assert any("sub-orbital" in m for m in messages)
        assert not any("decayed" in m for m in messages)

        caplog.clear()
        with caplog.at_level(logging.WARNING, logger="sgpjax"):
            again = elements.propagate("unified", 0.0)
        assert again.status is PropagationStatus.SUBORBITAL
        assert caplog.records == []


class TestMetaModels:
    def test_names(self) -> None:
        assert set(MODEL_NAMES) == {
            "simple",
            "near-earth-precise",
            "near-earth-highprec",
            "deep-space-4",
            "deep-space-8",
            "unified",
            "no-op",
            "model",
            "model4r",
            "model4",
            "model8",
        }

    @pytest.mark.parametrize(
        "name, near, deep",
        [
            ("model", "unified", "unified"),
            ("model4r", "unified", "unified"),
            ("model4", "near-earth-precise", "deep-space-4"),
            ("model8", "near-earth-highprec", "deep-space-8"),
            ("simple", "simple", "simple"),
        ],
    )
    def test_resolution(self, iss, molniya, name, near, deep) -> None:
        assert resolve_model(name, iss) == near
        assert resolve_model(name, molniya) == deep

    def test_unknown_name(self, iss) -> None:
        with pytest.raises(ValueError, match="Unknown model"):
            resolve_model("sgp4", iss)

    def test_resolution_follows_threshold(self, iss) -> None:
        from sgpjax.config import set_deep_space_period

        set_deep_space_period(60.0)
        assert resolve_model("model4", iss) == "deep-space-4"

    def test_meta_model_caches_concrete_member(self, iss, molniya) -> None:
        near = iss.propagate("model4", 60.0)
        deep = molniya.propagate("model8", 60.0)
        assert set(iss._cache) == {"near-earth-precise"}
        assert set(molniya._cache) == {"deep-space-8"}
        assert jnp.array_equal(near.position, iss.propagate("near-earth-precise", 60.0).position)
        assert jnp.array_equal(deep.position, molniya.propagate("deep-space-8", 60.0).position)

    def test_model_matches_unified(self, molniya) -> None:
        a = molniya.propagate("model", 720.0)
        b = molniya.propagate("unified", 720.0)
        assert jnp.array_equal(a.position, b.position)
