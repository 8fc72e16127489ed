"""Tests for ElementSet, StateVector and the error types."""

import dataclasses
from datetime import timedelta

import jax.numpy as jnp
import pytest
from conftest import ISS_LINE1, ISS_LINE2, elements_from_tle
from sgp4.api import WGS72 as SGP4_WGS72
from sgp4.api import Satrec

from sgpjax import ElementSet, StateVector
from sgpjax.config import set_deep_space_period, set_default_gravity
from sgpjax.errors import BadElements, ModelError, PropagationStatus, WrongRegime
from sgpjax.models._common import kozai_mean_motion, legacy_period_minutes, recover_mean_motion


class TestPropagationStatus:
    def test_codes(self) -> None:
        assert [int(s) for s in PropagationStatus] == [0, 1, 2, 3, 4, 5, 6]

    def test_messages(self) -> None:
        assert PropagationStatus.SUCCESS.message == "Success"
        assert PropagationStatus.MEAN_MOTION.message == "Mean motion < 0.0"
        assert PropagationStatus.DECAYED.message == "Satellite has decayed"

    def test_fatal(self) -> None:
        fatal = {s for s in PropagationStatus if s.is_fatal}
        assert {int(s) for s in fatal} == {1, 2, 3, 4}

    def test_model_error_names_everything(self) -> None:
        err = ModelError(3, "unified", 23599, 720.0)
        assert err.status is PropagationStatus.PERTURBED_ECCENTRICITY
        assert "unified" in str(err)
        assert "23599" in str(err)
        assert "720.000000" in str(err)
        assert isinstance(err, RuntimeError)

    def test_wrong_regime_is_value_error(self) -> None:
        err = WrongRegime("deep-space-4", 25544, 91.6, False)
        assert isinstance(err, ValueError)
        assert "near-earth" in str(err)


class TestVersion:
    def test_model_fields_bump_version(self, iss) -> None:
        assert iss.version == 0
        iss.bstar = 1.0e-4
        assert iss.version == 1
        iss.eccentricity = 0.001
        iss.epoch = iss.epoch + timedelta(seconds=1)
        assert iss.version == 3

    def test_identity_fields_do_not_bump_version(self, iss) -> None:
        iss.name = "ISS (ZARYA)"
        iss.catalog_number = 99999
        iss.element_number = 292
        assert iss.version == 0

    def test_gravity_bumps_version(self, iss) -> None:
        iss.gravity = "wgs84"
        assert iss.version == 1


class TestGravity:
    def test_default_from_config(self) -> None:
        set_default_gravity("wgs84")
        assert elements_from_tle(ISS_LINE1, ISS_LINE2).gravity == "wgs84"

    def test_default_alias_from_config(self) -> None:
        set_default_gravity("84")
        assert elements_from_tle(ISS_LINE1, ISS_LINE2).gravity == "wgs84"

    @pytest.mark.parametrize(
        "alias, expected", [("721", "wgs72old"), ("72", "wgs72"), ("84", "wgs84"), ("WGS84", "wgs84")]
    )
    def test_aliases(self, iss, alias, expected) -> None:
        iss.gravity = alias
        assert iss.gravity == expected

    def test_unknown_raises(self, iss) -> None:
        with pytest.raises(ValueError, match="Unknown gravity model"):
            iss.gravity = "egm2008"


class TestValidation:
    def test_valid(self, iss) -> None:
        iss.validate()

    @pytest.mark.parametrize("ecc", [1.0, 1.5, -0.01])
    def test_bad_eccentricity(self, iss, ecc) -> None:
        iss.eccentricity = ecc
        with pytest.raises(BadElements, match="eccentricity"):
            iss.validate()

    def test_negative_mean_motion(self, iss) -> None:
        iss.mean_motion = -0.01
        with pytest.raises(BadElements, match="mean motion"):
            iss.validate()

    @pytest.mark.parametrize("model", ["near-earth-precise", "model4", "simple"])
    def test_zero_mean_motion(self, iss, model) -> None:
        iss.mean_motion = 0.0
        iss.validate()
        assert iss.period == float("inf")
        with pytest.raises(ModelError) as excinfo:
            iss.propagate(model, 0.0)
        assert excinfo.value.status is PropagationStatus.MEAN_MOTION
        assert iss._cache == {}

    def test_propagate_validates(self, iss) -> None:
        iss.eccentricity = 1.2
        with pytest.raises(BadElements):
            iss.propagate("near-earth-precise", 0.0)
        assert iss._cache == {}

    def test_unknown_model(self, iss) -> None:
        with pytest.raises(ValueError, match="Unknown model"):
            iss.propagate("sgp5", 0.0)


class TestMeanElements:
    def test_epoch_split(self, iss) -> None:
        sat = Satrec.twoline2rv(ISS_LINE1, ISS_LINE2, SGP4_WGS72)
        el = iss.mean_elements()
        assert el.jd % 1.0 == 0.5
        assert el.jd + el.jdfrac == pytest.approx(sat.jdsatepoch + sat.jdsatepochF, abs=1e-9)

    def test_kozai_round_trip(self, iss) -> None:
        xnodp, _ = recover_mean_motion(iss.mean_motion, iss.eccentricity, iss.inclination)
        back = kozai_mean_motion(xnodp, iss.eccentricity, iss.inclination)
        assert back == pytest.approx(iss.mean_motion, rel=1e-12)


class TestGeometry:
    def test_iss_period(self, iss) -> None:
        assert iss.period / 60.0 == pytest.approx(91.6, abs=0.2)
        assert not iss.is_deep

    def test_iss_shape(self, iss) -> None:
        assert iss.semimajor == pytest.approx(6725.0, abs=15.0)
        assert iss.apoapsis - iss.periapsis == pytest.approx(2.0 * iss.eccentricity * iss.semimajor)
        assert iss.apogee == pytest.approx(iss.apoapsis - 6378.135)
        assert 300.0 < iss.perigee < iss.apogee < 400.0
        assert iss.semiminor < iss.semimajor

    def test_molniya_is_deep(self, molniya) -> None:
        assert molniya.is_deep
        assert molniya.period / 60.0 == pytest.approx(718.0, abs=2.0)

    def test_regime_boundary(self, iss) -> None:
        minutes = legacy_period_minutes(iss.mean_motion, iss.eccentricity, iss.inclination)
        set_deep_space_period(minutes)
        assert iss.is_deep
        set_deep_space_period(minutes * (1.0 + 1e-9))
        assert not iss.is_deep


class TestPropagate:
    def test_returns_state_vector(self, iss) -> None:
        sv = iss.propagate("unified", 60.0)
        assert isinstance(sv, StateVector)
        assert sv.position.shape == (3,)
        assert sv.velocity.shape == (3,)
        assert sv.tsince == 60.0
        assert sv.status is PropagationStatus.SUCCESS

    def test_state_vector_is_frozen(self, iss) -> None:
        sv = iss.propagate("unified", 0.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            sv.tsince = 1.0

    def test_datetime_and_minutes_agree(self, iss) -> None:
        by_time = iss.propagate("unified", iss.epoch + timedelta(minutes=90))
        by_minutes = iss.propagate("unified", 90.0)
        assert by_time.tsince == pytest.approx(90.0, abs=1e-9)
        assert jnp.allclose(by_time.position, by_minutes.position, atol=1e-6)

    def test_functional_alias(self, iss) -> None:
        import sgpjax

        sv = sgpjax.propagate(iss, "near-earth-precise", 30.0)
        assert jnp.allclose(sv.position, iss.propagate("near-earth-precise", 30.0).position)

    def test_noop(self, iss) -> None:
        sv = iss.propagate("no-op", 100.0)
        assert jnp.all(sv.position == 0.0)
        assert jnp.all(sv.velocity == 0.0)
        assert sv.status is PropagationStatus.SUCCESS
        assert iss._cache == {}


class TestCache:
    def test_idempotent(self, iss) -> None:
        first = iss.propagate("unified", 1440.0)
        entry = iss._cache["unified"]
        second = iss.propagate("unified", 1440.0)
        assert iss._cache["unified"] is entry
        assert jnp.array_equal(first.position, second.position)
        assert jnp.array_equal(first.velocity, second.velocity)

    def test_entries_per_model(self, iss) -> None:
        iss.propagate("unified", 0.0)
        iss.propagate("near-earth-highprec", 0.0)
        assert set(iss._cache) == {"unified", "near-earth-highprec"}

    def test_mutation_drops_cache(self, iss) -> None:
        before = iss.propagate("near-earth-precise", 720.0)
        stale = iss._cache["near-earth-precise"]
        iss.bstar = 10.0 * iss.bstar
        after = iss.propagate("near-earth-precise", 720.0)
        entry = iss._cache["near-earth-precise"]
        assert entry is not stale
        assert entry.version == iss.version
        assert not jnp.allclose(before.position, after.position, atol=1e-3)

    def test_gravity_change_drops_cache(self, iss) -> None:
        wgs72 = iss.propagate("unified", 60.0)
        iss.gravity = "wgs84"
        wgs84 = iss.propagate("unified", 60.0)
        assert iss._cache["unified"].version == iss.version
        assert not jnp.allclose(wgs72.position, wgs84.position, atol=1e-4)

    def test_identity_change_keeps_cache(self, iss) -> None:
        iss.propagate("unified", 0.0)
        entry = iss._cache["unified"]
        iss.name = "ISS"
        iss.propagate("unified", 10.0)
        assert iss._cache["unified"] is entry


def test_element_set_repr(iss) -> None:
    text = repr(iss)
    assert text.startswith("ElementSet(catalog_number=25544")
    assert isinstance(iss, ElementSet)
