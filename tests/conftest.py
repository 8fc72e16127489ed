from datetime import datetime, timedelta

import jax.numpy as jnp
import pytest
from sgp4.api import WGS72 as SGP4_WGS72
from sgp4.api import Satrec

from sgpjax import ElementSet
from sgpjax.config import set_deep_space_period, set_default_gravity, set_dtype
from sgpjax.constants import JD1950

# ISS, near-earth LEO (period ~92 min)
ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"

# Spacetrack Report #3 test object, near-earth with strong drag
STR3_LINE1 = "1 88888U          80275.98708465  .00073094  13844-3  66816-4 0    87"
STR3_LINE2 = "2 88888  72.8435 115.9689 0086731  52.6988 110.5714 16.05824518  1058"

# Deep space, low inclination (Lyddane branch), no resonance
LOWI_LINE1 = "1 23599U 95029B   06171.76535463  .00085586  12891-6  12956-2 0  2905"
LOWI_LINE2 = "2 23599   6.9327   0.2849 5782022 274.4436  25.2425  4.47796565123555"

# Molniya 2-14, 12-hour resonance
MOLNIYA_LINE1 = "1 08195U 75081A   06176.33215444  .00000099  00000-0  11873-3 0   813"
MOLNIYA_LINE2 = "2 08195  64.1586 279.0717 6877146 264.7651  20.2257  2.00491383225656"

# ITALSAT 2, geosynchronous
GEO_LINE1 = "1 24208U 96044A   06177.04061740 -.00000094  00000-0  10000-3 0  1600"
GEO_LINE2 = "2 24208   3.8536  80.0121 0026640 311.0977  48.3000  1.00778054 36119"


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Set float64 precision and default settings before every test.

    Tests that change the module-wide configuration (dtype, default gravity,
    deep-space period) would otherwise leak it into later tests.
    """
    set_dtype(jnp.float64)
    set_default_gravity("wgs72")
    set_deep_space_period(225.0)


def elements_from_tle(line1: str, line2: str, **kwargs) -> ElementSet:
    """Build an ElementSet from the fields the reference library parses."""
    sat = Satrec.twoline2rv(line1, line2, SGP4_WGS72)
    epoch = datetime(1949, 12, 31) + timedelta(days=sat.jdsatepoch - JD1950) + timedelta(days=sat.jdsatepochF)
    return ElementSet(
        epoch=epoch,
        mean_motion=sat.no_kozai,
        eccentricity=sat.ecco,
        inclination=sat.inclo,
        raan=sat.nodeo,
        arg_perigee=sat.argpo,
        mean_anomaly=sat.mo,
        first_derivative=sat.ndot,
        second_derivative=sat.nddot,
        bstar=sat.bstar,
        catalog_number=sat.satnum,
        **kwargs,
    )


def reference_state(line1: str, line2: str, tsince: float, gravity=SGP4_WGS72) -> tuple:
    """Reference ``(error, r, v)`` from python-sgp4."""
    sat = Satrec.twoline2rv(line1, line2, gravity)
    return sat.sgp4_tsince(tsince)


@pytest.fixture()
def iss() -> ElementSet:
    return elements_from_tle(ISS_LINE1, ISS_LINE2)


@pytest.fixture()
def str3() -> ElementSet:
    return elements_from_tle(STR3_LINE1, STR3_LINE2)


@pytest.fixture()
def low_inclination() -> ElementSet:
    return elements_from_tle(LOWI_LINE1, LOWI_LINE2)


@pytest.fixture()
def molniya() -> ElementSet:
    return elements_from_tle(MOLNIYA_LINE1, MOLNIYA_LINE2)


@pytest.fixture()
def geo() -> ElementSet:
    return elements_from_tle(GEO_LINE1, GEO_LINE2)
