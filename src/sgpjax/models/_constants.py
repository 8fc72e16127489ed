"""
Physical constants for the SGP propagator family.

Provides the three gravity presets consulted by the unified model, the fixed
constant block used by the original near-earth and deep-space models, and the
lunar/solar and resonance constants of the deep-space theory.
"""

from math import sqrt
from typing import NamedTuple


class EarthGravity(NamedTuple):
    """Earth gravity model constants.

    Attributes:
        tumin: Minutes per canonical time unit (1/xke).
        mu: Gravitational parameter [km^3/s^2].
        radiusearthkm: Earth equatorial radius [km].
        xke: Reciprocal of tumin [1/min], sqrt(GM) in earth radii and minutes.
        j2: Second zonal harmonic.
        j3: Third zonal harmonic.
        j4: Fourth zonal harmonic.
        j3oj2: Ratio j3/j2.
    """

    tumin: float
    mu: float
    radiusearthkm: float
    xke: float
    j2: float
    j3: float
    j4: float
    j3oj2: float


def _gravity(mu: float, re: float, xke: float, j2: float, j3: float, j4: float) -> EarthGravity:
    return EarthGravity(
        tumin=1.0 / xke,
        mu=mu,
        radiusearthkm=re,
        xke=xke,
        j2=j2,
        j3=j3,
        j4=j4,
        j3oj2=j3 / j2,
    )


WGS72OLD = _gravity(398600.79964, 6378.135, 0.0743669161, 0.001082616, -0.00000253881, -0.00000165597)
"""WGS 72 low-precision gravity model ("721")."""

WGS72 = _gravity(
    398600.8,
    6378.135,
    60.0 / sqrt(6378.135**3 / 398600.8),
    0.001082616,
    -0.00000253881,
    -0.00000165597,
)
"""WGS 72 gravity model ("72"), the default for the unified model."""

WGS84 = _gravity(
    398600.5,
    6378.137,
    60.0 / sqrt(6378.137**3 / 398600.5),
    0.00108262998905,
    -0.00000253215306,
    -0.00000161098761,
)
"""WGS 84 gravity model ("84")."""

GRAVITY_MODELS = {
    "wgs72old": WGS72OLD,
    "wgs72": WGS72,
    "wgs84": WGS84,
}
"""Mapping of gravity model names to ``EarthGravity`` instances."""

GRAVITY_ALIASES = {
    "721": "wgs72old",
    "72": "wgs72",
    "84": "wgs84",
}
"""Legacy numeric names accepted for the gravity presets."""


def resolve_gravity(name: str) -> str:
    """Return the canonical preset name for *name* or one of its aliases.

    Raises:
        ValueError: If *name* is not a known preset or alias.
    """
    key = GRAVITY_ALIASES.get(str(name), str(name)).lower()
    if key not in GRAVITY_MODELS:
        raise ValueError(
            f"Unknown gravity model '{name}'. Must be one of: "
            f"{', '.join(list(GRAVITY_MODELS) + list(GRAVITY_ALIASES))}"
        )
    return key


# ---------------------------------------------------------------------------
# Constant block of the original SGP/SGP4/SGP8/SDP4/SDP8 models
# ---------------------------------------------------------------------------

XKMPER = 6378.135
"""Earth equatorial radius [km]."""

AE = 1.0
"""Distance unit [earth radii]."""

XKE = 0.0743669161
"""sqrt(GM) [er^1.5/min]."""

CK2 = 5.413080e-4
"""0.5 * J2 * AE^2."""

CK4 = 0.62098875e-6
"""-0.375 * J4 * AE^4."""

XJ3 = -0.253881e-5
"""Third zonal harmonic."""

QOMS2T = 1.88027916e-9
"""(q0 - s)^4 atmospheric density constant [er^4]."""

S = 1.01222928
"""Atmospheric density parameter s [er]."""

RHO = 0.15696615
"""Reference atmospheric density used by the SGP8 drag term."""

E6A = 1.0e-6
"""Convergence tolerance of the legacy Kepler solvers."""

TOTHRD = 2.0 / 3.0

XMNPDA = 1440.0
"""Minutes per day."""

VKMPERSEC = XKMPER / 60.0
"""Velocity unit [km/s per earth radius per minute]."""


# ---------------------------------------------------------------------------
# Lunar/solar perturbation constants
# ---------------------------------------------------------------------------


class ThirdBody(NamedTuple):
    """Constants of one perturbing body in the deep-space theory.

    Attributes:
        c1: Body coefficient (gravitational strength factor).
        zn: Mean motion of the body [rad/min].
        ze: Eccentricity of the body's apparent orbit.
    """

    c1: float
    zn: float
    ze: float


SOLAR = ThirdBody(c1=2.9864797e-6, zn=1.19459e-5, ze=0.01675)
LUNAR = ThirdBody(c1=4.7968065e-7, zn=1.5835218e-4, ze=0.05490)

ZCOSGS = 0.1945905
ZSINGS = -0.98088458
ZCOSIS = 0.91744867
ZSINIS = 0.39785416

ZSHALLOW = 5.2359877e-2
"""Inclination below which the node-rate lunar/solar term is suppressed [rad]."""

LYDDANE_INCLINATION = 0.2
"""Inclination below which the Lyddane form of the periodics is used [rad]."""


# ---------------------------------------------------------------------------
# Geopotential resonance constants
# ---------------------------------------------------------------------------

THDT = 4.37526908801129966e-3
"""Earth rotation rate [rad/min]."""

THDT_LEGACY = 4.3752691e-3
"""Earth rotation rate of the original deep-space models [rad/min]."""

G520_EMSQ = -5740.032
"""Eccentricity-squared coefficient of the low-eccentricity g520 polynomial."""

G520_EMSQ_LEGACY = -5740.0
"""The same coefficient as used by the original deep-space models."""

STEP = 720.0
"""Resonance integrator step [min]."""

STEP2 = 0.5 * STEP * STEP

Q22 = 1.7891679e-6
Q31 = 2.1460748e-6
Q33 = 2.2123015e-7

ROOT22 = 1.7891679e-6
ROOT32 = 3.7393792e-7
ROOT44 = 7.3636953e-9
ROOT52 = 1.1428639e-7
ROOT54 = 2.1765803e-9

FASX2 = 0.13130908
FASX4 = 2.8843198
FASX6 = 0.37448087

G22 = 5.7686396
G32 = 0.95240898
G44 = 1.8014998
G52 = 1.0508330
G54 = 4.4108898

SYNCHRONOUS_BAND = (0.0034906585, 0.0052359877)
"""Open interval of mean motion [rad/min] for 24-hour resonance."""

HALF_DAY_BAND = (8.26e-3, 9.24e-3)
"""Closed interval of mean motion [rad/min] for 12-hour resonance."""

HALF_DAY_MIN_ECC = 0.5
