"""
Deep-space engine: lunar/solar setup, resonance stepper, SDP4 and SDP8.

The setup runs once at Python time and produces a ``DeepSpaceParams``.  It
serves both the original deep-space models and the unified model; they
differ only in the sidereal angle, earth rotation rate, mean motion and
semimajor-axis normalization they pass in.

The time-dependent pieces are JAX functions traced inside the model kernels:

- ``secular_drift`` applies the linear lunar/solar rates;
- ``advance_resonance`` steps the resonance integrator from a
  ``ResonanceState`` toward the requested time and returns the new state;
- ``periodic_terms`` evaluates the lunar/solar periodic corrections.

The original models keep the integrator state and a ``PeriodicState`` cache
between calls; their kernels take both and return the updated values.
"""

from __future__ import annotations

import logging
from math import atan2 as _py_atan2
from math import cos as _py_cos
from math import pi as _py_pi
from math import sin as _py_sin
from math import sqrt as _py_sqrt
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from sgpjax.models._common import actan, mod2pi, recover_mean_motion
from sgpjax.models._constants import (
    FASX2,
    FASX4,
    FASX6,
    G22,
    G520_EMSQ,
    G520_EMSQ_LEGACY,
    G32,
    G44,
    G52,
    G54,
    HALF_DAY_BAND,
    HALF_DAY_MIN_ECC,
    LUNAR,
    LYDDANE_INCLINATION,
    Q22,
    Q31,
    Q33,
    ROOT22,
    ROOT32,
    ROOT44,
    ROOT52,
    ROOT54,
    SOLAR,
    STEP,
    STEP2,
    SYNCHRONOUS_BAND,
    THDT_LEGACY,
    XKE,
    TOTHRD,
    ZCOSGS,
    ZCOSIS,
    ZSHALLOW,
    ZSINGS,
    ZSINIS,
    ThirdBody,
)
from sgpjax.models._near_earth import sgp4_init, sgp4_short_period, sgp8_init, sgp8_short_period
from sgpjax.models._types import (
    DeepSpaceParams,
    MeanElements,
    PeriodicState,
    ResonanceState,
    SGP4Params,
    SGP8Params,
)
from sgpjax.time import thetag

logger = logging.getLogger(__name__)

_twopi = 2.0 * _py_pi

RESONANCE_KINDS = {0: "none", 1: "synchronous", 2: "half-day"}


# ---------------------------------------------------------------------------
# Python-time setup
# ---------------------------------------------------------------------------


class _BodyTerms(NamedTuple):
    s1: float
    s2: float
    s3: float
    s4: float
    s5: float
    s6: float
    s7: float
    z1: float
    z2: float
    z3: float
    z11: float
    z12: float
    z13: float
    z21: float
    z22: float
    z23: float
    z31: float
    z32: float
    z33: float


def _body_terms(
    body: ThirdBody,
    zcosg: float,
    zsing: float,
    zcosi: float,
    zsini: float,
    zcosh: float,
    zsinh: float,
    cosim: float,
    sinim: float,
    cosomm: float,
    sinomm: float,
    em: float,
    xnoi: float,
) -> _BodyTerms:
    """Direction-cosine expansion of one perturbing body's potential."""
    emsq = em * em
    betasq = 1.0 - emsq
    rtemsq = _py_sqrt(betasq)

    a1 = zcosg * zcosh + zsing * zcosi * zsinh
    a3 = -zsing * zcosh + zcosg * zcosi * zsinh
    a7 = -zcosg * zsinh + zsing * zcosi * zcosh
    a8 = zsing * zsini
    a9 = zsing * zsinh + zcosg * zcosi * zcosh
    a10 = zcosg * zsini
    a2 = cosim * a7 + sinim * a8
    a4 = cosim * a9 + sinim * a10
    a5 = -sinim * a7 + cosim * a8
    a6 = -sinim * a9 + cosim * a10

    x1 = a1 * cosomm + a2 * sinomm
    x2 = a3 * cosomm + a4 * sinomm
    x3 = -a1 * sinomm + a2 * cosomm
    x4 = -a3 * sinomm + a4 * cosomm
    x5 = a5 * sinomm
    x6 = a6 * sinomm
    x7 = a5 * cosomm
    x8 = a6 * cosomm

    z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
    z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
    z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
    z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * emsq
    z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * emsq
    z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * emsq
    z11 = -6.0 * a1 * a5 + emsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
    z12 = -6.0 * (a1 * a6 + a3 * a5) + emsq * (-24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5))
    z13 = -6.0 * a3 * a6 + emsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
    z21 = 6.0 * a2 * a5 + emsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
    z22 = 6.0 * (a4 * a5 + a2 * a6) + emsq * (24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8))
    z23 = 6.0 * a4 * a6 + emsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
    z1 = z1 + z1 + betasq * z31
    z2 = z2 + z2 + betasq * z32
    z3 = z3 + z3 + betasq * z33

    s3 = body.c1 * xnoi
    s2 = -0.5 * s3 / rtemsq
    s4 = s3 * rtemsq
    s1 = -15.0 * em * s4
    s5 = x1 * x3 + x2 * x4
    s6 = x2 * x3 + x1 * x4
    s7 = x2 * x4 - x1 * x3

    return _BodyTerms(s1, s2, s3, s4, s5, s6, s7, z1, z2, z3, z11, z12, z13, z21, z22, z23, z31, z32, z33)


def _half_day_coefficients(
    em: float, cosim: float, sinim: float, nm: float, aonv: float, g520_emsq: float = G520_EMSQ
) -> tuple:
    """Geopotential coefficients d2201..d5433 of the 12-hour resonance."""
    emsq = em * em
    eoc = em * emsq
    cosisq = cosim * cosim

    g201 = -0.306 - (em - 0.64) * 0.440
    if em <= 0.65:
        g211 = 3.616 - 13.2470 * em + 16.2900 * emsq
        g310 = -19.302 + 117.3900 * em - 228.4190 * emsq + 156.5910 * eoc
        g322 = -18.9068 + 109.7927 * em - 214.6334 * emsq + 146.5816 * eoc
        g410 = -41.122 + 242.6940 * em - 471.0940 * emsq + 313.9530 * eoc
        g422 = -146.407 + 841.8800 * em - 1629.014 * emsq + 1083.4350 * eoc
        g520 = -532.114 + 3017.977 * em + g520_emsq * emsq + 3708.2760 * eoc
    else:
        g211 = -72.099 + 331.819 * em - 508.738 * emsq + 266.724 * eoc
        g310 = -346.844 + 1582.851 * em - 2415.925 * emsq + 1246.113 * eoc
        g322 = -342.585 + 1554.908 * em - 2366.899 * emsq + 1215.972 * eoc
        g410 = -1052.797 + 4758.686 * em - 7193.992 * emsq + 3651.957 * eoc
        g422 = -3581.690 + 16178.110 * em - 24462.770 * emsq + 12422.520 * eoc
        if em > 0.715:
            g520 = -5149.66 + 29936.92 * em - 54087.36 * emsq + 31324.56 * eoc
        else:
            g520 = 1464.74 - 4664.75 * em + 3763.64 * emsq
    if em < 0.7:
        g533 = -919.22770 + 4988.6100 * em - 9064.7700 * emsq + 5542.21 * eoc
        g521 = -822.71072 + 4568.6173 * em - 8491.4146 * emsq + 5337.524 * eoc
        g532 = -853.66600 + 4690.2500 * em - 8624.7700 * emsq + 5341.4 * eoc
    else:
        g533 = -37995.780 + 161616.52 * em - 229838.20 * emsq + 109377.94 * eoc
        g521 = -51752.104 + 218913.95 * em - 309468.16 * emsq + 146349.42 * eoc
        g532 = -40023.880 + 170470.89 * em - 242699.48 * emsq + 115605.82 * eoc

    sini2 = sinim * sinim
    f220 = 0.75 * (1.0 + 2.0 * cosim + cosisq)
    f221 = 1.5 * sini2
    f321 = 1.875 * sinim * (1.0 - 2.0 * cosim - 3.0 * cosisq)
    f322 = -1.875 * sinim * (1.0 + 2.0 * cosim - 3.0 * cosisq)
    f441 = 35.0 * sini2 * f220
    f442 = 39.3750 * sini2 * sini2
    f522 = 9.84375 * sinim * (
        sini2 * (1.0 - 2.0 * cosim - 5.0 * cosisq) + 0.33333333 * (-2.0 + 4.0 * cosim + 6.0 * cosisq)
    )
    f523 = sinim * (
        4.92187512 * sini2 * (-2.0 - 4.0 * cosim + 10.0 * cosisq)
        + 6.56250012 * (1.0 + 2.0 * cosim - 3.0 * cosisq)
    )
    f542 = 29.53125 * sinim * (2.0 - 8.0 * cosim + cosisq * (-12.0 + 8.0 * cosim + 10.0 * cosisq))
    f543 = 29.53125 * sinim * (-2.0 - 8.0 * cosim + cosisq * (12.0 + 8.0 * cosim - 10.0 * cosisq))

    temp1 = 3.0 * nm * nm * aonv * aonv
    temp = temp1 * ROOT22
    d2201 = temp * f220 * g201
    d2211 = temp * f221 * g211
    temp1 = temp1 * aonv
    temp = temp1 * ROOT32
    d3210 = temp * f321 * g310
    d3222 = temp * f322 * g322
    temp1 = temp1 * aonv
    temp = 2.0 * temp1 * ROOT44
    d4410 = temp * f441 * g410
    d4422 = temp * f442 * g422
    temp1 = temp1 * aonv
    temp = temp1 * ROOT52
    d5220 = temp * f522 * g520
    d5232 = temp * f523 * g532
    temp = 2.0 * temp1 * ROOT54
    d5421 = temp * f542 * g521
    d5433 = temp * f543 * g533
    return d2201, d2211, d3210, d3222, d4410, d4422, d5220, d5232, d5421, d5433


def lunar_solar_setup(
    el: MeanElements,
    *,
    xnq: float,
    aonv: float,
    theta: float,
    thdt: float,
    mdot: float,
    argpdot: float,
    nodedot: float,
    retrograde_shallow: bool,
    g520_emsq: float = G520_EMSQ,
) -> DeepSpaceParams:
    """Compute the lunar/solar and resonance constants of a deep-space orbit.

    Args:
        el: Epoch elements.
        xnq: Recovered mean motion the theory is expanded about [rad/min].
        aonv: Inverse semimajor axis used by the resonance terms [1/er].
        theta: Greenwich sidereal angle at epoch [rad].
        thdt: Earth rotation rate [rad/min].
        mdot: Secular mean anomaly rate [rad/min].
        argpdot: Secular argument of perigee rate [rad/min].
        nodedot: Secular node rate [rad/min].
        retrograde_shallow: Also suppress the node-rate terms for
            inclinations within ``ZSHALLOW`` of 180 degrees.
        g520_emsq: Eccentricity-squared coefficient of the half-day g520
            polynomial for eccentricities up to 0.65.

    Returns:
        DeepSpaceParams: The coefficients consumed by the per-call routines.
    """
    ecco = el.ecco
    inclo = el.inclo
    sinim = _py_sin(inclo)
    cosim = _py_cos(inclo)
    snodm = _py_sin(el.nodeo)
    cnodm = _py_cos(el.nodeo)
    sinomm = _py_sin(el.argpo)
    cosomm = _py_cos(el.argpo)
    emsq = ecco * ecco

    # Lunar orbit and solar/lunar mean anomalies at epoch
    day = el.ds50 + 18261.5
    xnodce = (4.5236020 - 9.2422029e-4 * day) % _twopi
    stem = _py_sin(xnodce)
    ctem = _py_cos(xnodce)
    zcosil = 0.91375164 - 0.03568096 * ctem
    zsinil = _py_sqrt(1.0 - zcosil * zcosil)
    zsinhl = 0.089683511 * stem / zsinil
    zcoshl = _py_sqrt(1.0 - zsinhl * zsinhl)
    gam = 5.8351514 + 0.0019443680 * day
    zx = 0.39785416 * stem / zsinil
    zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
    zx = gam + _py_atan2(zx, zy) - xnodce
    zcosgl = _py_cos(zx)
    zsingl = _py_sin(zx)
    zmol = (4.7199672 + 0.22997150 * day - gam) % _twopi
    zmos = (6.2565837 + 0.017201977 * day) % _twopi

    xnoi = 1.0 / xnq
    shallow = inclo < ZSHALLOW or (retrograde_shallow and inclo > _py_pi - ZSHALLOW)

    geometry = (
        (SOLAR, ZCOSGS, ZSINGS, ZCOSIS, ZSINIS, cnodm, snodm),
        (
            LUNAR,
            zcosgl,
            zsingl,
            zcosil,
            zsinil,
            zcoshl * cnodm + zsinhl * snodm,
            snodm * zcoshl - cnodm * zsinhl,
        ),
    )

    sse = ssi = ssl = ssg = ssh = 0.0
    amplitudes = []
    for body, zcosg, zsing, zcosi, zsini, zcosh, zsinh in geometry:
        b = _body_terms(body, zcosg, zsing, zcosi, zsini, zcosh, zsinh, cosim, sinim, cosomm, sinomm, ecco, xnoi)
        zn = body.zn
        sse += b.s1 * zn * b.s5
        ssi += b.s2 * zn * (b.z11 + b.z13)
        ssl += -zn * b.s3 * (b.z1 + b.z3 - 14.0 - 6.0 * emsq)
        sh = 0.0 if shallow else -zn * b.s2 * (b.z21 + b.z23)
        if sinim != 0.0:
            sh = sh / sinim
        ssh += sh
        ssg += b.s4 * zn * (b.z31 + b.z33 - 6.0) - cosim * sh

        amplitudes.append(
            (
                2.0 * b.s1 * b.s6,
                2.0 * b.s1 * b.s7,
                2.0 * b.s2 * b.z12,
                2.0 * b.s2 * (b.z13 - b.z11),
                -2.0 * b.s3 * b.z2,
                -2.0 * b.s3 * (b.z3 - b.z1),
                -2.0 * b.s3 * (-21.0 - 9.0 * emsq) * body.ze,
                2.0 * b.s4 * b.z32,
                2.0 * b.s4 * (b.z33 - b.z31),
                -18.0 * b.s4 * body.ze,
                -2.0 * b.s2 * b.z22,
                -2.0 * b.s2 * (b.z23 - b.z21),
            )
        )
    (se2, se3, si2, si3, sl2, sl3, sl4, sgh2, sgh3, sgh4, sh2, sh3) = amplitudes[0]
    (ee2, e3, xi2, xi3, xl2, xl3, xl4, xgh2, xgh3, xgh4, xh2, xh3) = amplitudes[1]

    # Geopotential resonance
    irez = 0
    if SYNCHRONOUS_BAND[0] < xnq < SYNCHRONOUS_BAND[1]:
        irez = 1
    if HALF_DAY_BAND[0] <= xnq <= HALF_DAY_BAND[1] and ecco >= HALF_DAY_MIN_ECC:
        irez = 2

    del1 = del2 = del3 = 0.0
    dcoef = (0.0,) * 10
    xfact = xlamo = 0.0
    if irez == 2:
        dcoef = _half_day_coefficients(ecco, cosim, sinim, xnq, aonv, g520_emsq)
        xlamo = (el.mo + el.nodeo + el.nodeo - theta - theta) % _twopi
        xfact = mdot + ssl + 2.0 * (nodedot + ssh - thdt) - xnq
    elif irez == 1:
        g200 = 1.0 + emsq * (-2.5 + 0.8125 * emsq)
        g310 = 1.0 + 2.0 * emsq
        g300 = 1.0 + emsq * (-6.0 + 6.60937 * emsq)
        f220 = 0.75 * (1.0 + cosim) * (1.0 + cosim)
        f311 = 0.9375 * sinim * sinim * (1.0 + 3.0 * cosim) - 0.75 * (1.0 + cosim)
        f330 = 1.0 + cosim
        f330 = 1.875 * f330 * f330 * f330
        del1 = 3.0 * xnq * xnq * aonv * aonv
        del2 = 2.0 * del1 * f220 * g200 * Q22
        del3 = 3.0 * del1 * f330 * g300 * Q33 * aonv
        del1 = del1 * f311 * g310 * Q31 * aonv
        xlamo = (el.mo + el.nodeo + el.argpo - theta) % _twopi
        xfact = mdot + argpdot + nodedot - thdt + ssl + ssg + ssh - xnq

    d2201, d2211, d3210, d3222, d4410, d4422, d5220, d5232, d5421, d5433 = dcoef
    logger.debug("Deep-space setup: resonance=%s, theta=%.9f rad", RESONANCE_KINDS[irez], theta)

    return DeepSpaceParams(
        irez=float(irez),
        theta=theta,
        thdt=thdt,
        inclo=inclo,
        siniq=sinim,
        cosiq=cosim,
        argpo=el.argpo,
        argpdot=argpdot,
        sse=sse,
        ssi=ssi,
        ssl=ssl,
        ssg=ssg,
        ssh=ssh,
        se2=se2,
        se3=se3,
        si2=si2,
        si3=si3,
        sl2=sl2,
        sl3=sl3,
        sl4=sl4,
        sgh2=sgh2,
        sgh3=sgh3,
        sgh4=sgh4,
        sh2=sh2,
        sh3=sh3,
        ee2=ee2,
        e3=e3,
        xi2=xi2,
        xi3=xi3,
        xl2=xl2,
        xl3=xl3,
        xl4=xl4,
        xgh2=xgh2,
        xgh3=xgh3,
        xgh4=xgh4,
        xh2=xh2,
        xh3=xh3,
        zmos=zmos,
        zmol=zmol,
        del1=del1,
        del2=del2,
        del3=del3,
        d2201=d2201,
        d2211=d2211,
        d3210=d3210,
        d3222=d3222,
        d4410=d4410,
        d4422=d4422,
        d5220=d5220,
        d5232=d5232,
        d5421=d5421,
        d5433=d5433,
        xfact=xfact,
        xlamo=xlamo,
        xnq=xnq,
    )


def initial_resonance_state(ds: DeepSpaceParams) -> ResonanceState:
    """Integrator state at epoch (``atime == 0`` marks it as fresh)."""
    return ResonanceState(atime=0.0, xli=ds.xlamo, xni=ds.xnq)


def initial_periodic_state() -> PeriodicState:
    """Empty periodic cache; the first evaluation always recomputes."""
    return PeriodicState(savtsn=1.0e20, sghs=0.0, shs=0.0, sghl=0.0, shl=0.0, pe=0.0, pinc=0.0, pl=0.0)


# ---------------------------------------------------------------------------
# Per-call pieces (JAX)
# ---------------------------------------------------------------------------


def secular_drift(ds: DeepSpaceParams, t: ArrayLike, em, inclm, argpm, nodem, mm) -> tuple:
    """Linear lunar/solar drift of ``(em, inclm, argpm, nodem, mm)``."""
    return (
        em + ds.sse * t,
        inclm + ds.ssi * t,
        argpm + ds.ssg * t,
        nodem + ds.ssh * t,
        mm + ds.ssl * t,
    )


def _resonance_rates(ds: DeepSpaceParams, st: ResonanceState) -> tuple[Array, Array, Array]:
    """Rates ``(xldot, xndot, xnddt)`` of the integrated longitude and motion."""
    xli = st.xli

    # Synchronous
    xndot_sync = (
        ds.del1 * jnp.sin(xli - FASX2)
        + ds.del2 * jnp.sin(2.0 * (xli - FASX4))
        + ds.del3 * jnp.sin(3.0 * (xli - FASX6))
    )
    xnddt_sync = (
        ds.del1 * jnp.cos(xli - FASX2)
        + 2.0 * ds.del2 * jnp.cos(2.0 * (xli - FASX4))
        + 3.0 * ds.del3 * jnp.cos(3.0 * (xli - FASX6))
    )

    # Half-day
    xomi = ds.argpo + ds.argpdot * st.atime
    x2omi = xomi + xomi
    x2li = xli + xli
    xndot_half = (
        ds.d2201 * jnp.sin(x2omi + xli - G22)
        + ds.d2211 * jnp.sin(xli - G22)
        + ds.d3210 * jnp.sin(xomi + xli - G32)
        + ds.d3222 * jnp.sin(-xomi + xli - G32)
        + ds.d4410 * jnp.sin(x2omi + x2li - G44)
        + ds.d4422 * jnp.sin(x2li - G44)
        + ds.d5220 * jnp.sin(xomi + xli - G52)
        + ds.d5232 * jnp.sin(-xomi + xli - G52)
        + ds.d5421 * jnp.sin(xomi + x2li - G54)
        + ds.d5433 * jnp.sin(-xomi + x2li - G54)
    )
    xnddt_half = (
        ds.d2201 * jnp.cos(x2omi + xli - G22)
        + ds.d2211 * jnp.cos(xli - G22)
        + ds.d3210 * jnp.cos(xomi + xli - G32)
        + ds.d3222 * jnp.cos(-xomi + xli - G32)
        + ds.d5220 * jnp.cos(xomi + xli - G52)
        + ds.d5232 * jnp.cos(-xomi + xli - G52)
        + 2.0
        * (
            ds.d4410 * jnp.cos(x2omi + x2li - G44)
            + ds.d4422 * jnp.cos(x2li - G44)
            + ds.d5421 * jnp.cos(xomi + x2li - G54)
            + ds.d5433 * jnp.cos(-xomi + x2li - G54)
        )
    )

    half_day = ds.irez > 1.5
    xldot = st.xni + ds.xfact
    xndot = jnp.where(half_day, xndot_half, xndot_sync)
    xnddt = jnp.where(half_day, xnddt_half, xnddt_sync) * xldot
    return xldot, xndot, xnddt


def _resonance_step(ds: DeepSpaceParams, st: ResonanceState, delt: ArrayLike) -> ResonanceState:
    xldot, xndot, xnddt = _resonance_rates(ds, st)
    return ResonanceState(
        atime=st.atime + delt,
        xli=st.xli + xldot * delt + xndot * STEP2,
        xni=st.xni + xndot * delt + xnddt * STEP2,
    )


def _select(flag: ArrayLike, a, b):
    return jax.tree_util.tree_map(lambda x, y: jnp.where(flag, x, y), a, b)


def advance_resonance(
    ds: DeepSpaceParams, state: ResonanceState, t: ArrayLike
) -> tuple[Array, Array, ResonanceState]:
    """Integrate the resonance equations from *state* to time *t*.

    The integrator restarts from epoch when *state* is fresh or lies on the
    other side of epoch from *t*.  Otherwise it first steps back toward
    epoch while ``|t| < |atime|``, then takes whole steps toward *t* until
    within one step, and finishes with a Taylor correction.

    Returns:
        tuple[Array, Array, ResonanceState]: ``(xn, xl, state)``, the mean
        motion [rad/min] and mean longitude [rad] at *t*, and the integrator
        state to resume from.
    """
    resonant = ds.irez > 0.5
    zero = jnp.zeros_like(t)
    fresh = ResonanceState(atime=zero, xli=zero + ds.xlamo, xni=zero + ds.xnq)

    restart = (state.atime == 0.0) | ((t >= 0.0) & (state.atime < 0.0)) | ((t < 0.0) & (state.atime >= 0.0))
    st = _select(restart, fresh, state)

    # Step back toward epoch, always moving atime toward zero.
    back = jnp.where(t >= 0.0, -STEP, STEP)
    st = jax.lax.while_loop(
        lambda s: resonant & (jnp.abs(t) < jnp.abs(s.atime)),
        lambda s: _resonance_step(ds, s, back),
        st,
    )
    st = _select(st.atime == 0.0, fresh, st)

    forward = jnp.where(t >= 0.0, STEP, -STEP)
    st = jax.lax.while_loop(
        lambda s: resonant & (jnp.abs(t - s.atime) >= STEP),
        lambda s: _resonance_step(ds, s, forward),
        st,
    )

    ft = t - st.atime
    xldot, xndot, xnddt = _resonance_rates(ds, st)
    xn = st.xni + xndot * ft + xnddt * ft * ft * 0.5
    xl = st.xli + xldot * ft + xndot * ft * ft * 0.5
    return xn, xl, st


def resonant_mean_anomaly(ds: DeepSpaceParams, xl: ArrayLike, nodem: ArrayLike, argpm: ArrayLike, t: ArrayLike):
    """Mean anomaly from the integrated mean longitude."""
    theta = ds.theta + t * ds.thdt
    sync = xl - nodem - argpm + theta
    half = xl - 2.0 * nodem + 2.0 * theta
    return jnp.where(ds.irez > 1.5, half, sync)


def periodic_terms(ds: DeepSpaceParams, t: ArrayLike) -> PeriodicState:
    """Evaluate the lunar/solar periodic terms at *t*."""
    zm = ds.zmos + SOLAR.zn * t
    zf = zm + 2.0 * SOLAR.ze * jnp.sin(zm)
    sinzf = jnp.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * jnp.cos(zf)
    ses = ds.se2 * f2 + ds.se3 * f3
    sis = ds.si2 * f2 + ds.si3 * f3
    sls = ds.sl2 * f2 + ds.sl3 * f3 + ds.sl4 * sinzf
    sghs = ds.sgh2 * f2 + ds.sgh3 * f3 + ds.sgh4 * sinzf
    shs = ds.sh2 * f2 + ds.sh3 * f3

    zm = ds.zmol + LUNAR.zn * t
    zf = zm + 2.0 * LUNAR.ze * jnp.sin(zm)
    sinzf = jnp.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * jnp.cos(zf)
    sel = ds.ee2 * f2 + ds.e3 * f3
    sil = ds.xi2 * f2 + ds.xi3 * f3
    sll = ds.xl2 * f2 + ds.xl3 * f3 + ds.xl4 * sinzf
    sghl = ds.xgh2 * f2 + ds.xgh3 * f3 + ds.xgh4 * sinzf
    shl = ds.xh2 * f2 + ds.xh3 * f3

    return PeriodicState(
        savtsn=t,
        sghs=sghs,
        shs=shs,
        sghl=sghl,
        shl=shl,
        pe=ses + sel,
        pinc=sis + sil,
        pl=sls + sll,
    )


# ---------------------------------------------------------------------------
# Original deep-space models
# ---------------------------------------------------------------------------


def legacy_secular(
    ds: DeepSpaceParams,
    state: ResonanceState,
    t: ArrayLike,
    xll: ArrayLike,
    omgasm: ArrayLike,
    xnodes: ArrayLike,
    xn: ArrayLike,
    ecco: ArrayLike,
    inclo: ArrayLike,
) -> tuple:
    """Secular lunar/solar and resonance update of the original models.

    Returns:
        tuple: ``(xll, omgasm, xnodes, em, xinc, xn, state)``.
    """
    em, xinc, omgasm, xnodes, xll = secular_drift(ds, t, ecco, inclo, omgasm, xnodes, xll)

    # A negative inclination is reflected through the node.
    flip = xinc < 0.0
    xinc = jnp.abs(xinc)
    xnodes = jnp.where(flip, xnodes + _py_pi, xnodes)
    omgasm = jnp.where(flip, omgasm - _py_pi, omgasm)

    xn_res, xl, new_state = advance_resonance(ds, state, t)
    resonant = ds.irez > 0.5
    xll = jnp.where(resonant, resonant_mean_anomaly(ds, xl, xnodes, omgasm, t), xll)
    xn = jnp.where(resonant, xn_res, xn)
    state = _select(resonant, new_state, state)
    return xll, omgasm, xnodes, em, xinc, xn, state


def legacy_periodics(
    ds: DeepSpaceParams,
    cache: PeriodicState,
    t: ArrayLike,
    em: ArrayLike,
    xinc: ArrayLike,
    omgasm: ArrayLike,
    xnodes: ArrayLike,
    xll: ArrayLike,
) -> tuple:
    """Periodic lunar/solar update of the original models.

    The trigonometric terms are reused from *cache* unless it is 30 minutes
    or more away from *t*.  The Lyddane form is chosen by the epoch
    inclination.

    Returns:
        tuple: ``(em, xinc, omgasm, xnodes, xll, cache)``.
    """
    sinis = jnp.sin(xinc)
    cosis = jnp.cos(xinc)

    recompute = jnp.abs(cache.savtsn - t) >= 30.0
    cache = _select(recompute, periodic_terms(ds, t), cache)

    pgh = cache.sghs + cache.sghl
    ph = cache.shs + cache.shl
    xinc = xinc + cache.pinc
    em = em + cache.pe

    # Direct
    ph_d = ph / ds.siniq
    omgasm_d = omgasm + pgh - ds.cosiq * ph_d
    xnodes_d = xnodes + ph_d

    # Lyddane
    sinok = jnp.sin(xnodes)
    cosok = jnp.cos(xnodes)
    alfdp = sinis * sinok + ph * cosok + cache.pinc * cosis * sinok
    betdp = sinis * cosok - ph * sinok + cache.pinc * cosis * cosok
    xls = xll + omgasm + cosis * xnodes + cache.pl + pgh - cache.pinc * xnodes * sinis
    xnodes_l = actan(alfdp, betdp)
    omgasm_l = xls - (xll + cache.pl) - jnp.cos(xinc) * xnodes_l

    direct = ds.inclo >= LYDDANE_INCLINATION
    omgasm = jnp.where(direct, omgasm_d, omgasm_l)
    xnodes = jnp.where(direct, xnodes_d, xnodes_l)
    xll = xll + cache.pl
    return em, xinc, omgasm, xnodes, xll, cache


def sdp4_init(el: MeanElements) -> tuple[SGP4Params, DeepSpaceParams]:
    """Initialize SDP4: the SGP4 secular terms plus the deep-space setup."""
    p = sgp4_init(el, deep=True)
    ds = lunar_solar_setup(
        el,
        xnq=p.xnodp,
        aonv=1.0 / p.aodp,
        theta=thetag(el.ds50),
        thdt=THDT_LEGACY,
        mdot=p.xmdot,
        argpdot=p.omgdot,
        nodedot=p.xnodot,
        retrograde_shallow=False,
        g520_emsq=G520_EMSQ_LEGACY,
    )
    return p, ds


@jax.jit
def sdp4_propagate(
    p: SGP4Params,
    ds: DeepSpaceParams,
    res: ResonanceState,
    per: PeriodicState,
    tsince: ArrayLike,
) -> tuple[Array, Array, Array, ResonanceState, PeriodicState]:
    """Evaluate SDP4 at *tsince* minutes from epoch.

    Returns:
        ``(r, v, status, res, per)`` with the updated integrator state and
        periodic cache.
    """
    t = tsince
    xmdf = p.mo + p.xmdot * t
    omgadf = p.argpo + p.omgdot * t
    xnoddf = p.nodeo + p.xnodot * t
    tsq = t * t
    xnode = xnoddf + p.xnodcf * tsq
    tempa = 1.0 - p.c1 * t
    tempe = p.bstar * p.c4 * t
    templ = p.t2cof * tsq

    xmdf, omgadf, xnode, em, xinc, xn, res = legacy_secular(
        ds, res, t, xmdf, omgadf, xnode, p.xnodp, p.ecco, p.inclo
    )
    a = (XKE / xn) ** TOTHRD * tempa * tempa
    e = em - tempe
    xmam = xmdf + p.xnodp * templ

    e, xinc, omgadf, xnode, xmam, per = legacy_periodics(ds, per, t, e, xinc, omgadf, xnode, xmam)
    xl = xmam + omgadf + xnode

    r, v, status = sgp4_short_period(p, a, e, xl, omgadf, xnode, xinc)
    return r, v, status, res, per


def sdp8_init(el: MeanElements) -> tuple[SGP8Params, DeepSpaceParams]:
    """Initialize SDP8: the SGP8 secular terms plus the deep-space setup."""
    p = sgp8_init(el, deep=True)
    _, aodp = recover_mean_motion(el.no_kozai, el.ecco, el.inclo)
    ds = lunar_solar_setup(
        el,
        xnq=p.xnodp,
        aonv=1.0 / aodp,
        theta=thetag(el.ds50),
        thdt=THDT_LEGACY,
        mdot=p.xlldot,
        argpdot=p.omgdt,
        nodedot=p.xnodot,
        retrograde_shallow=False,
        g520_emsq=G520_EMSQ_LEGACY,
    )
    return p, ds


@jax.jit
def sdp8_propagate(
    p: SGP8Params,
    ds: DeepSpaceParams,
    res: ResonanceState,
    per: PeriodicState,
    tsince: ArrayLike,
) -> tuple[Array, Array, Array, ResonanceState, PeriodicState]:
    """Evaluate SDP8 at *tsince* minutes from epoch.

    Returns:
        ``(r, v, status, res, per)`` with the updated integrator state and
        periodic cache.
    """
    t = tsince
    z1 = 0.5 * p.xndt * t * t
    z7 = 3.5 * TOTHRD * z1 / p.xnodp
    xmamdf = p.mo + p.xlldot * t
    omgasm = p.argpo + p.omgdt * t + z7 * p.xgdt1
    xnodes = p.nodeo + p.xnodot * t + z7 * p.xhdt1

    xmamdf, omgasm, xnodes, em, xinc, xn, res = legacy_secular(
        ds, res, t, xmamdf, omgasm, xnodes, p.xnodp, p.ecco, p.inclo
    )
    xn = xn + p.xndt * t
    em = em + p.edot * t
    xmam = xmamdf + z1 + z7 * p.xmdt1

    em, xinc, omgasm, xnodes, xmam, per = legacy_periodics(ds, per, t, em, xinc, omgasm, xnodes, xmam)
    xmam = mod2pi(xmam)

    r, v, status = sgp8_short_period(p, xn, em, xmam, omgasm, xnodes, jnp.sin(0.5 * xinc))
    return r, v, status, res, per
