"""
Data types for the SGP propagator family.

Initialization produces immutable NamedTuple parameter sets of plain floats;
they are JAX pytrees, so the propagation kernels take them directly as
arguments.  The two legacy deep-space state types are returned by the kernels
and threaded back in on the next call.
"""

from typing import NamedTuple


class MeanElements(NamedTuple):
    """Numeric elements handed from an element set to a model initializer.

    Attributes:
        no_kozai: Mean motion as published (Kozai form) [rad/min].
        ecco: Eccentricity.
        inclo: Inclination [rad].
        nodeo: Right ascension of ascending node [rad].
        argpo: Argument of perigee [rad].
        mo: Mean anomaly [rad].
        ndot: First derivative of mean motion divided by 2 [rad/min^2].
        nddot: Second derivative of mean motion divided by 6 [rad/min^3].
        bstar: B* drag coefficient [1/earth radii].
        jd: Julian date of epoch (whole part, ends in .5).
        jdfrac: Julian date of epoch (fractional day).
        ds50: Days of epoch since 1950 January 0.0 UT.
    """

    no_kozai: float
    ecco: float
    inclo: float
    nodeo: float
    argpo: float
    mo: float
    ndot: float
    nddot: float
    bstar: float
    jd: float
    jdfrac: float
    ds50: float


class SGPParams(NamedTuple):
    """Initialization of the simplified (SGP) model."""

    ecco: float
    inclo: float
    nodeo: float
    argpo: float
    no: float
    ndot: float
    nddot: float
    a0: float
    q0: float
    xlo: float
    d10: float
    d20: float
    d30: float
    d40: float
    omgdt: float
    xnodot: float
    c5: float
    c6: float


class SGP4Params(NamedTuple):
    """Initialization shared by the SGP4 and SDP4 models.

    ``isimp`` is 1.0 when the truncated drag terms are used (perigee below
    220 km, or any deep-space orbit); the ``d*`` and ``t3cof``-``t5cof``
    terms are zero in that case.
    """

    ecco: float
    inclo: float
    nodeo: float
    argpo: float
    mo: float
    bstar: float
    xnodp: float
    aodp: float
    cosio: float
    sinio: float
    x3thm1: float
    x1mth2: float
    x7thm1: float
    eta: float
    c1: float
    c4: float
    c5: float
    xmdot: float
    omgdot: float
    xnodot: float
    omgcof: float
    xmcof: float
    xnodcf: float
    t2cof: float
    xlcof: float
    aycof: float
    delmo: float
    sinmo: float
    d2: float
    d3: float
    d4: float
    t3cof: float
    t4cof: float
    t5cof: float
    isimp: float


class SGP8Params(NamedTuple):
    """Initialization shared by the SGP8 and SDP8 models.

    When ``isimp`` is 0.0 the mean motion and eccentricity follow the
    power-law drag solution parameterized by ``gamma``, ``pp``, ``qq``,
    ``xnd``, ``ed`` and ``ovgpp``; otherwise they are linear in time.
    """

    ecco: float
    inclo: float
    nodeo: float
    argpo: float
    mo: float
    xnodp: float
    cosi: float
    sini: float
    cosio2: float
    sinio2: float
    theta2: float
    tthmun: float
    unm5th: float
    unmth2: float
    a3cof: float
    xmdt1: float
    xgdt1: float
    xhdt1: float
    xlldot: float
    omgdt: float
    xnodot: float
    xndt: float
    edot: float
    gamma: float
    pp: float
    qq: float
    xnd: float
    ed: float
    ovgpp: float
    isimp: float


class DeepSpaceParams(NamedTuple):
    """Lunar/solar and resonance constants of a deep-space orbit.

    ``irez`` is 0.0 (no resonance), 1.0 (synchronous) or 2.0 (half-day).
    ``theta`` is the Greenwich sidereal angle at epoch and ``thdt`` the
    earth rotation rate used to advance it.  The ``s*``/``x*``
    coefficient groups are the solar and lunar periodic amplitudes; ``sse``
    through ``ssh`` are the secular rates of eccentricity, inclination,
    mean anomaly, argument of perigee and node.
    """

    irez: float
    theta: float
    thdt: float
    inclo: float
    siniq: float
    cosiq: float
    argpo: float
    argpdot: float
    sse: float
    ssi: float
    ssl: float
    ssg: float
    ssh: float
    se2: float
    se3: float
    si2: float
    si3: float
    sl2: float
    sl3: float
    sl4: float
    sgh2: float
    sgh3: float
    sgh4: float
    sh2: float
    sh3: float
    ee2: float
    e3: float
    xi2: float
    xi3: float
    xl2: float
    xl3: float
    xl4: float
    xgh2: float
    xgh3: float
    xgh4: float
    xh2: float
    xh3: float
    zmos: float
    zmol: float
    del1: float
    del2: float
    del3: float
    d2201: float
    d2211: float
    d3210: float
    d3222: float
    d4410: float
    d4422: float
    d5220: float
    d5232: float
    d5421: float
    d5433: float
    xfact: float
    xlamo: float
    xnq: float


class ResonanceState(NamedTuple):
    """Running state of the resonance integrator.

    Attributes:
        atime: Time of the last integration step [min since epoch].
            Zero means uninitialized.
        xli: Integrated mean longitude [rad].
        xni: Integrated mean motion [rad/min].
    """

    atime: float
    xli: float
    xni: float


class PeriodicState(NamedTuple):
    """Cached lunar/solar periodic terms of the original deep-space models.

    Attributes:
        savtsn: Time at which the terms were last evaluated [min].
        sghs: Solar argument-of-perigee term.
        shs: Solar node term.
        sghl: Lunar argument-of-perigee term.
        shl: Lunar node term.
        pe: Total eccentricity term.
        pinc: Total inclination term.
        pl: Total mean anomaly term.
    """

    savtsn: float
    sghs: float
    shs: float
    sghl: float
    shl: float
    pe: float
    pinc: float
    pl: float


class UnifiedParams(NamedTuple):
    """Initialization of the unified (revised SGP4) model.

    Gravity constants are carried along because the unified model honours
    the element set's gravity preset.  ``deep`` selects the deep-space
    kernel; ``init_status`` holds the informational code raised during
    initialization (0 or 5).
    """

    radiusearthkm: float
    xke: float
    j2: float
    j3oj2: float
    bstar: float
    ecco: float
    inclo: float
    nodeo: float
    argpo: float
    mo: float
    no_unkozai: float
    con41: float
    x1mth2: float
    x7thm1: float
    eta: float
    cc1: float
    cc4: float
    cc5: float
    mdot: float
    argpdot: float
    nodedot: float
    omgcof: float
    xmcof: float
    nodecf: float
    t2cof: float
    xlcof: float
    aycof: float
    delmo: float
    sinmao: float
    d2: float
    d3: float
    d4: float
    t3cof: float
    t4cof: float
    t5cof: float
    isimp: float
    deep: float
    init_status: float
