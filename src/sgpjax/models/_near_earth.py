"""
Near-earth models: SGP, SGP4 and SGP8.

Each model has a Python-time initializer that turns ``MeanElements`` into a
NamedTuple of plain floats, and a jitted kernel that evaluates the state at
``tsince`` minutes from epoch.  Kernels return ``(r, v, status)`` with the
position in km, the velocity in km/s (TEME) and an ``int32`` status code that
is zero on success.

The post-Kepler step of SGP4 and the short-period step of SGP8 are shared
with their deep-space counterparts in ``_deep_space``.
"""

from __future__ import annotations

import logging
from math import cos as _py_cos
from math import pi as _py_pi
from math import sin as _py_sin
from math import sqrt as _py_sqrt

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from sgpjax.models._common import (
    actan,
    mod2pi,
    orientation,
    recover_mean_motion,
    solve_kepler,
    state_vector,
    status_code,
)
from sgpjax.models._constants import (
    AE,
    CK2,
    CK4,
    E6A,
    QOMS2T,
    RHO,
    S,
    TOTHRD,
    VKMPERSEC,
    XJ3,
    XKE,
    XKMPER,
    XMNPDA,
)
from sgpjax.models._types import MeanElements, SGP4Params, SGP8Params, SGPParams

logger = logging.getLogger(__name__)

_twopi = 2.0 * _py_pi

# Smallest |1 + cos(i)| allowed in the xlcof denominator.
_TEMP4 = 1.5e-12


# ---------------------------------------------------------------------------
# SGP
# ---------------------------------------------------------------------------


def sgp_init(el: MeanElements) -> SGPParams:
    """Initialize the simplified (SGP) model.

    SGP keeps the published mean motion and only removes the first-order J2
    bias from the semimajor axis.  Drag enters through the mean-motion
    derivatives of the element set rather than B*.
    """
    c1 = CK2 * 1.5
    c2 = CK2 / 4.0
    c3 = CK2 / 2.0
    c4 = XJ3 * AE**3 / (4.0 * CK2)
    cosi0 = _py_cos(el.inclo)
    sini0 = _py_sin(el.inclo)
    esq = el.ecco * el.ecco

    a1 = (XKE / el.no_kozai) ** TOTHRD
    d1 = c1 / a1 / a1 * (3.0 * cosi0 * cosi0 - 1.0) / (1.0 - esq) ** 1.5
    a0 = a1 * (1.0 - d1 / 3.0 - d1 * d1 - 134.0 / 81.0 * d1 * d1 * d1)
    p0 = a0 * (1.0 - esq)
    q0 = a0 * (1.0 - el.ecco)

    d30 = c1 * cosi0
    po2no = el.no_kozai / (p0 * p0)

    params = SGPParams(
        ecco=el.ecco,
        inclo=el.inclo,
        nodeo=el.nodeo,
        argpo=el.argpo,
        no=el.no_kozai,
        ndot=el.ndot,
        nddot=el.nddot,
        a0=a0,
        q0=q0,
        xlo=el.mo + el.argpo + el.nodeo,
        d10=c3 * sini0 * sini0,
        d20=c2 * (7.0 * cosi0 * cosi0 - 1.0),
        d30=d30,
        d40=d30 * sini0,
        omgdt=c1 * po2no * (5.0 * cosi0 * cosi0 - 1.0),
        xnodot=-2.0 * d30 * po2no,
        c5=0.5 * c4 * sini0 * (3.0 + 5.0 * cosi0) / (1.0 + cosi0),
        c6=c4 * sini0,
    )
    logger.debug("SGP initialized: a0=%.9f er, q0=%.9f er", a0, q0)
    return params


@jax.jit
def sgp_propagate(p: SGPParams, tsince: ArrayLike) -> tuple[Array, Array, Array]:
    """Evaluate SGP at *tsince* minutes from epoch."""
    t = tsince

    # Secular gravity and drag
    n = p.no + (2.0 * p.ndot + 3.0 * p.nddot * t) * t
    a = p.a0 * (p.no / n) ** TOTHRD
    e = jnp.where(a > p.q0, 1.0 - p.q0 / a, E6A)
    pp = a * (1.0 - e * e)
    xnodes = p.nodeo + p.xnodot * t
    omgas = p.argpo + p.omgdt * t
    xls = mod2pi(p.xlo + (p.no + p.omgdt + p.xnodot + (p.ndot + p.nddot * t) * t) * t)

    # Long period periodics
    axnsl = e * jnp.cos(omgas)
    aynsl = e * jnp.sin(omgas) - p.c6 / pp
    xl = mod2pi(xls - p.c5 / pp * axnsl)

    u = mod2pi(xl - xnodes)
    eo1, _, _ = solve_kepler(u, axnsl, aynsl, tol=E6A, clamp=1.0)
    sineo1 = jnp.sin(eo1)
    coseo1 = jnp.cos(eo1)

    # Short period preliminary quantities
    ecose = axnsl * coseo1 + aynsl * sineo1
    esine = axnsl * sineo1 - aynsl * coseo1
    el2 = axnsl * axnsl + aynsl * aynsl
    pl = a * (1.0 - el2)
    pl2 = pl * pl
    r = a * (1.0 - ecose)
    rdot = XKE * jnp.sqrt(a) / r * esine
    rvdot = XKE * jnp.sqrt(pl) / r
    temp = esine / (1.0 + jnp.sqrt(1.0 - el2))
    sinu = a / r * (sineo1 - aynsl - axnsl * temp)
    cosu = a / r * (coseo1 - axnsl + aynsl * temp)
    su = actan(sinu, cosu)

    # Short periodics
    sin2u = (cosu + cosu) * sinu
    cos2u = 1.0 - 2.0 * sinu * sinu
    rk = r + p.d10 / pl * cos2u
    uk = su - p.d20 / pl2 * sin2u
    xnodek = xnodes + p.d30 * sin2u / pl2
    xinck = p.inclo + p.d40 / pl2 * cos2u

    u_vec, v_vec = orientation(uk, xnodek, xinck)
    r_km, v_kms = state_vector(rk, rdot, rvdot, u_vec, v_vec, XKMPER, VKMPERSEC)
    status = status_code((el2 > 1.0, 1))
    return r_km, v_kms, status


# ---------------------------------------------------------------------------
# SGP4 (and the part of SDP4 it shares)
# ---------------------------------------------------------------------------


def sgp4_init(el: MeanElements, deep: bool = False) -> SGP4Params:
    """Initialize SGP4, or the near-earth half of SDP4 when *deep* is set.

    The deep-space form drops the ``c3``, ``c5`` and higher-order drag terms
    and always uses the truncated drag polynomial.
    """
    ecco = el.ecco
    cosio = _py_cos(el.inclo)
    sinio = _py_sin(el.inclo)
    theta2 = cosio * cosio
    x3thm1 = 3.0 * theta2 - 1.0
    eosq = ecco * ecco
    beta02 = 1.0 - eosq
    beta0 = _py_sqrt(beta02)
    xnodp, aodp = recover_mean_motion(el.no_kozai, ecco, el.inclo)

    # Perigee below 220 km truncates the drag terms.
    isimp = deep or (aodp * (1.0 - ecco) / AE) < (220.0 / XKMPER + AE)

    # Perigee below 156 km alters S and QOMS2T.
    s4 = S
    qoms24 = QOMS2T
    perige = (aodp * (1.0 - ecco) - AE) * XKMPER
    if perige < 156.0:
        s4 = perige - 78.0 if perige > 98.0 else 20.0
        qoms24 = ((120.0 - s4) * AE / XKMPER) ** 4
        s4 = s4 / XKMPER + AE

    pinvsq = 1.0 / (aodp * aodp * beta02 * beta02)
    tsi = 1.0 / (aodp - s4)
    eta = aodp * ecco * tsi
    etasq = eta * eta
    eeta = ecco * eta
    psisq = abs(1.0 - etasq)
    coef = qoms24 * tsi**4
    coef1 = coef / psisq**3.5
    c2 = (
        coef1
        * xnodp
        * (
            aodp * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
            + 0.75 * CK2 * tsi / psisq * x3thm1 * (8.0 + 3.0 * etasq * (8.0 + etasq))
        )
    )
    c1 = el.bstar * c2
    a3ovk2 = -XJ3 / CK2 * AE**3
    x1mth2 = 1.0 - theta2
    c4 = (
        2.0
        * xnodp
        * coef1
        * aodp
        * beta02
        * (
            eta * (2.0 + 0.5 * etasq)
            + ecco * (0.5 + 2.0 * etasq)
            - 2.0
            * CK2
            * tsi
            / (aodp * psisq)
            * (
                -3.0 * x3thm1 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
                + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * _py_cos(2.0 * el.argpo)
            )
        )
    )

    theta4 = theta2 * theta2
    temp1 = 3.0 * CK2 * pinvsq * xnodp
    temp2 = temp1 * CK2 * pinvsq
    temp3 = 1.25 * CK4 * pinvsq * pinvsq * xnodp
    xmdot = (
        xnodp
        + 0.5 * temp1 * beta0 * x3thm1
        + 0.0625 * temp2 * beta0 * (13.0 - 78.0 * theta2 + 137.0 * theta4)
    )
    x1m5th = 1.0 - 5.0 * theta2
    omgdot = (
        -0.5 * temp1 * x1m5th
        + 0.0625 * temp2 * (7.0 - 114.0 * theta2 + 395.0 * theta4)
        + temp3 * (3.0 - 36.0 * theta2 + 49.0 * theta4)
    )
    xhdot1 = -temp1 * cosio
    xnodot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * theta2) + 2.0 * temp3 * (3.0 - 7.0 * theta2)) * cosio

    denom = 1.0 + cosio
    if abs(denom) < _TEMP4:
        denom = _TEMP4
    xlcof = 0.125 * a3ovk2 * sinio * (3.0 + 5.0 * cosio) / denom
    aycof = 0.25 * a3ovk2 * sinio

    c5 = omgcof = xmcof = 0.0
    d2 = d3 = d4 = t3cof = t4cof = t5cof = 0.0
    if not deep:
        c5 = 2.0 * coef1 * aodp * beta02 * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)
        # c3 and xmcof divide by the eccentricity.
        if ecco > 1.0e-4:
            c3 = coef * tsi * a3ovk2 * xnodp * AE * sinio / ecco
            omgcof = el.bstar * c3 * _py_cos(el.argpo)
            xmcof = -TOTHRD * coef * el.bstar * AE / eeta
    if not isimp:
        c1sq = c1 * c1
        d2 = 4.0 * aodp * tsi * c1sq
        temp = d2 * tsi * c1 / 3.0
        d3 = (17.0 * aodp + s4) * temp
        d4 = 0.5 * temp * aodp * tsi * (221.0 * aodp + 31.0 * s4) * c1
        t3cof = d2 + 2.0 * c1sq
        t4cof = 0.25 * (3.0 * d3 + c1 * (12.0 * d2 + 10.0 * c1sq))
        t5cof = 0.2 * (
            3.0 * d4 + 12.0 * c1 * d3 + 6.0 * d2 * d2 + 15.0 * c1sq * (2.0 * d2 + c1sq)
        )

    logger.debug(
        "%s initialized: perigee=%.3f km, isimp=%s",
        "SDP4" if deep else "SGP4",
        perige,
        isimp,
    )
    return SGP4Params(
        ecco=ecco,
        inclo=el.inclo,
        nodeo=el.nodeo,
        argpo=el.argpo,
        mo=el.mo,
        bstar=el.bstar,
        xnodp=xnodp,
        aodp=aodp,
        cosio=cosio,
        sinio=sinio,
        x3thm1=x3thm1,
        x1mth2=x1mth2,
        x7thm1=7.0 * theta2 - 1.0,
        eta=eta,
        c1=c1,
        c4=c4,
        c5=c5,
        xmdot=xmdot,
        omgdot=omgdot,
        xnodot=xnodot,
        omgcof=omgcof,
        xmcof=xmcof,
        xnodcf=3.5 * beta02 * xhdot1 * c1,
        t2cof=1.5 * c1,
        xlcof=xlcof,
        aycof=aycof,
        delmo=(1.0 + eta * _py_cos(el.mo)) ** 3,
        sinmo=_py_sin(el.mo),
        d2=d2,
        d3=d3,
        d4=d4,
        t3cof=t3cof,
        t4cof=t4cof,
        t5cof=t5cof,
        isimp=float(isimp),
    )


def sgp4_short_period(
    p: SGP4Params,
    a: ArrayLike,
    e: ArrayLike,
    xl: ArrayLike,
    omega: ArrayLike,
    xnode: ArrayLike,
    xinc: ArrayLike,
) -> tuple[Array, Array, Array]:
    """Long-period, Kepler and short-period steps common to SGP4 and SDP4.

    Args:
        p: Model initialization.
        a: Semimajor axis after drag [er].
        e: Eccentricity after drag.
        xl: Mean longitude ``M + argp + node`` [rad].
        omega: Argument of perigee [rad].
        xnode: Right ascension of ascending node [rad].
        xinc: Inclination the short-period node correction is added to [rad].

    Returns:
        tuple[Array, Array, Array]: ``(r, v, status)``.
    """
    beta = jnp.sqrt(1.0 - e * e)
    xn = XKE / a**1.5

    # Long period periodics
    axn = e * jnp.cos(omega)
    temp = 1.0 / (a * beta * beta)
    xll = temp * p.xlcof * axn
    aynl = temp * p.aycof
    xlt = xl + xll
    ayn = e * jnp.sin(omega) + aynl

    capu = mod2pi(xlt - xnode)
    _, sinepw, cosepw = solve_kepler(capu, axn, ayn, tol=E6A)

    # Short period preliminary quantities
    ecose = axn * cosepw + ayn * sinepw
    esine = axn * sinepw - ayn * cosepw
    elsq = axn * axn + ayn * ayn
    temp = 1.0 - elsq
    pl = a * temp
    r = a * (1.0 - ecose)
    temp1 = 1.0 / r
    rdot = XKE * jnp.sqrt(a) * esine * temp1
    rfdot = XKE * jnp.sqrt(pl) * temp1
    temp2 = a * temp1
    betal = jnp.sqrt(temp)
    temp3 = 1.0 / (1.0 + betal)
    cosu = temp2 * (cosepw - axn + ayn * esine * temp3)
    sinu = temp2 * (sinepw - ayn - axn * esine * temp3)
    u = actan(sinu, cosu)
    sin2u = 2.0 * sinu * cosu
    cos2u = 2.0 * cosu * cosu - 1.0
    temp = 1.0 / pl
    temp1 = CK2 * temp
    temp2 = temp1 * temp

    # Short periodics
    rk = r * (1.0 - 1.5 * temp2 * betal * p.x3thm1) + 0.5 * temp1 * p.x1mth2 * cos2u
    uk = u - 0.25 * temp2 * p.x7thm1 * sin2u
    xnodek = xnode + 1.5 * temp2 * p.cosio * sin2u
    xinck = xinc + 1.5 * temp2 * p.cosio * p.sinio * cos2u
    rdotk = rdot - xn * temp1 * p.x1mth2 * sin2u
    rfdotk = rfdot + xn * temp1 * (p.x1mth2 * cos2u + 1.5 * p.x3thm1)

    u_vec, v_vec = orientation(uk, xnodek, xinck)
    r_km, v_kms = state_vector(rk, rdotk, rfdotk, u_vec, v_vec, XKMPER, VKMPERSEC)
    status = status_code((jnp.abs(e) > 1.0, 1), (pl < 0.0, 4))
    return r_km, v_kms, status


@jax.jit
def sgp4_propagate(p: SGP4Params, tsince: ArrayLike) -> tuple[Array, Array, Array]:
    """Evaluate SGP4 at *tsince* minutes from epoch."""
    t = tsince

    # Secular gravity and drag
    xmdf = p.mo + p.xmdot * t
    omgadf = p.argpo + p.omgdot * t
    xnoddf = p.nodeo + p.xnodot * t
    tsq = t * t
    xnode = xnoddf + p.xnodcf * tsq
    tempa = 1.0 - p.c1 * t
    tempe = p.bstar * p.c4 * t
    templ = p.t2cof * tsq

    # Full drag terms unless perigee is below 220 km
    delomg = p.omgcof * t
    delm = p.xmcof * ((1.0 + p.eta * jnp.cos(xmdf)) ** 3 - p.delmo)
    temp = delomg + delm
    xmp_full = xmdf + temp
    tcube = tsq * t
    tfour = t * tcube
    full = p.isimp < 0.5
    xmp = jnp.where(full, xmp_full, xmdf)
    omega = jnp.where(full, omgadf - temp, omgadf)
    tempa = jnp.where(full, tempa - p.d2 * tsq - p.d3 * tcube - p.d4 * tfour, tempa)
    tempe = jnp.where(full, tempe + p.bstar * p.c5 * (jnp.sin(xmp_full) - p.sinmo), tempe)
    templ = jnp.where(full, templ + p.t3cof * tcube + tfour * (p.t4cof + t * p.t5cof), templ)

    a = p.aodp * tempa * tempa
    e = p.ecco - tempe
    xl = xmp + omega + xnode + p.xnodp * templ

    return sgp4_short_period(p, a, e, xl, omega, xnode, p.inclo)


# ---------------------------------------------------------------------------
# SGP8 (and the part of SDP8 it shares)
# ---------------------------------------------------------------------------


def sgp8_init(el: MeanElements, deep: bool = False) -> SGP8Params:
    """Initialize SGP8, or the near-earth half of SDP8 when *deep* is set.

    SGP8 integrates drag analytically: the mean-motion and eccentricity
    rates are expanded to third order and fitted by a power law in time.
    When the drag rate is negligible, or for deep-space orbits, the rates are
    held linear instead.
    """
    ecco = el.ecco
    cosi = _py_cos(el.inclo)
    theta2 = cosi * cosi
    tthmun = 3.0 * theta2 - 1.0
    eosq = ecco * ecco
    beta02 = 1.0 - eosq
    beta0 = _py_sqrt(beta02)
    xnodp, aodp = recover_mean_motion(el.no_kozai, ecco, el.inclo)

    b = 2.0 * el.bstar / RHO
    po = aodp * beta02
    pom2 = 1.0 / (po * po)
    sini = _py_sin(el.inclo)
    sing = _py_sin(el.argpo)
    cosg = _py_cos(el.argpo)
    theta4 = theta2 * theta2
    unm5th = 1.0 - 5.0 * theta2
    unmth2 = 1.0 - theta2
    a3cof = -XJ3 / CK2 * AE**3
    pardt1 = 3.0 * CK2 * pom2 * xnodp
    pardt2 = pardt1 * CK2 * pom2
    pardt4 = 1.25 * CK4 * pom2 * pom2 * xnodp
    xmdt1 = 0.5 * pardt1 * beta0 * tthmun
    xgdt1 = -0.5 * pardt1 * unm5th
    xhdt1 = -pardt1 * cosi
    xlldot = xnodp + xmdt1 + 0.0625 * pardt2 * beta0 * (13.0 - 78.0 * theta2 + 137.0 * theta4)
    omgdt = (
        xgdt1
        + 0.0625 * pardt2 * (7.0 - 114.0 * theta2 + 395.0 * theta4)
        + pardt4 * (3.0 - 36.0 * theta2 + 49.0 * theta4)
    )
    xnodot = xhdt1 + (0.5 * pardt2 * (4.0 - 19.0 * theta2) + 2.0 * pardt4 * (3.0 - 7.0 * theta2)) * cosi

    # Drag
    tsi = 1.0 / (po - S)
    eta = ecco * S * tsi
    eta2 = eta * eta
    psim2 = abs(1.0 / (1.0 - eta2))
    alpha2 = 1.0 + eosq
    eeta = ecco * eta
    cos2g = 2.0 * cosg * cosg - 1.0
    d5 = tsi * psim2
    d1 = d5 / po
    d2 = 12.0 + eta2 * (36.0 + 4.5 * eta2)
    d3 = eta2 * (15.0 + 2.5 * eta2)
    d4 = eta * (5.0 + 3.75 * eta2)
    b1 = CK2 * tthmun
    b2 = -CK2 * unmth2
    b3 = a3cof * sini
    c0 = 0.5 * b * RHO * QOMS2T * xnodp * aodp * tsi**4 * psim2**3.5 / _py_sqrt(alpha2)
    c1 = 1.5 * xnodp * alpha2 * alpha2 * c0
    c4 = d1 * d3 * b2
    c5 = d5 * d4 * b3
    xndt = c1 * (
        (2.0 + eta2 * (3.0 + 34.0 * eosq) + 5.0 * eeta * (4.0 + eta2) + 8.5 * eosq)
        + d1 * d2 * b1
        + c4 * cos2g
        + c5 * sing
    )
    xndtn = xndt / xnodp

    gamma = pp = qq = xnd = ed = ovgpp = 0.0
    isimp = deep or abs(xndtn * XMNPDA) < 2.16e-3
    if isimp:
        edot = -TOTHRD * xndtn * (1.0 - ecco)
    else:
        d6 = eta * (30.0 + 22.5 * eta2)
        d7 = eta * (5.0 + 12.5 * eta2)
        d8 = 1.0 + eta2 * (6.75 + eta2)
        c8 = d1 * d7 * b2
        c9 = d5 * d8 * b3
        edot = -c0 * (
            eta * (4.0 + eta2 + eosq * (15.5 + 7.0 * eta2))
            + ecco * (5.0 + 15.0 * eta2)
            + d1 * d6 * b1
            + c8 * cos2g
            + c9 * sing
        )
        d20 = 0.5 * TOTHRD * xndtn
        aldtal = ecco * edot / alpha2
        tsdtts = 2.0 * aodp * tsi * (d20 * beta02 + ecco * edot)
        etdt = (edot + ecco * tsdtts) * tsi * S
        psdtps = -eta * etdt * psim2
        sin2g = 2.0 * sing * cosg
        c0dtc0 = d20 + 4.0 * tsdtts - aldtal - 7.0 * psdtps
        c1dtc1 = xndtn + 4.0 * aldtal + c0dtc0
        d9 = eta * (6.0 + 68.0 * eosq) + ecco * (20.0 + 15.0 * eta2)
        d10 = 5.0 * eta * (4.0 + eta2) + ecco * (17.0 + 68.0 * eta2)
        d11 = eta * (72.0 + 18.0 * eta2)
        d12 = eta * (30.0 + 10.0 * eta2)
        d13 = 5.0 + 11.25 * eta2
        d14 = tsdtts - 2.0 * psdtps
        d15 = 2.0 * (d20 + ecco * edot / beta02)
        d1dt = d1 * (d14 + d15)
        d2dt = etdt * d11
        d3dt = etdt * d12
        d4dt = etdt * d13
        d5dt = d5 * d14
        c4dt = b2 * (d1dt * d3 + d1 * d3dt)
        c5dt = b3 * (d5dt * d4 + d5 * d4dt)
        d16 = (
            d9 * etdt
            + d10 * edot
            + b1 * (d1dt * d2 + d1 * d2dt)
            + c4dt * cos2g
            + c5dt * sing
            + xgdt1 * (c5 * cosg - 2.0 * c4 * sin2g)
        )
        xnddt = c1dtc1 * xndt + c1 * d16
        eddot = c0dtc0 * edot - c0 * (
            (4.0 + 3.0 * eta2 + 30.0 * eeta + eosq * (15.5 + 21.0 * eta2)) * etdt
            + (5.0 + 15.0 * eta2 + eeta * (31.0 + 14.0 * eta2)) * edot
            + b1 * (d1dt * d6 + d1 * etdt * (30.0 + 67.5 * eta2))
            + b2 * (d1dt * d7 + d1 * etdt * (5.0 + 37.5 * eta2)) * cos2g
            + b3 * (d5dt * d8 + d5 * etdt * eta * (13.5 + 4.0 * eta2)) * sing
            + xgdt1 * (c9 * cosg - 2.0 * c8 * sin2g)
        )
        d25 = edot * edot
        d17 = xnddt / xnodp - xndtn * xndtn
        tsddts = 2.0 * tsdtts * (tsdtts - d20) + aodp * tsi * (
            TOTHRD * beta02 * d17 - 4.0 * d20 * ecco * edot + 2.0 * (d25 + ecco * eddot)
        )
        etddt = (eddot + 2.0 * edot * tsdtts) * tsi * S + tsddts * eta
        d18 = tsddts - tsdtts * tsdtts
        # psdtps vanishes with eta, so the ratio term does too.
        d19 = -eta * etddt * psim2 - psdtps * psdtps
        if eta2 != 0.0:
            d19 -= psdtps * psdtps / eta2
        d23 = etdt * etdt
        d1ddt = d1dt * (d14 + d15) + d1 * (
            d18
            - 2.0 * d19
            + TOTHRD * d17
            + 2.0 * (alpha2 * d25 / beta02 + ecco * eddot) / beta02
        )
        xntrdt = (
            xndt
            * (
                2.0 * TOTHRD * d17
                + 3.0 * (d25 + ecco * eddot) / alpha2
                - 6.0 * aldtal * aldtal
                + 4.0 * d18
                - 7.0 * d19
            )
            + c1dtc1 * xnddt
            + c1
            * (
                c1dtc1 * d16
                + d9 * etddt
                + d10 * eddot
                + d23 * (6.0 + 30.0 * eeta + 68.0 * eosq)
                + etdt * edot * (40.0 + 30.0 * eta2 + 272.0 * eeta)
                + d25 * (17.0 + 68.0 * eta2)
                + b1 * (d1ddt * d2 + 2.0 * d1dt * d2dt + d1 * (etddt * d11 + d23 * (72.0 + 54.0 * eta2)))
                + b2
                * (d1ddt * d3 + 2.0 * d1dt * d3dt + d1 * (etddt * d12 + d23 * (30.0 + 30.0 * eta2)))
                * cos2g
                + b3
                * (
                    (d5dt * d14 + d5 * (d18 - 2.0 * d19)) * d4
                    + 2.0 * d4dt * d5dt
                    + d5 * (etddt * d13 + 22.5 * eta * d23)
                )
                * sing
                + xgdt1
                * (
                    (7.0 * d20 + 4.0 * ecco * edot / beta02) * (c5 * cosg - 2.0 * c4 * sin2g)
                    + ((2.0 * c5dt * cosg - 4.0 * c4dt * sin2g) - xgdt1 * (c5 * sing + 4.0 * c4 * cos2g))
                )
            )
        )
        tmnddt = xnddt * 1.0e9
        temp = tmnddt * tmnddt - xndt * 1.0e18 * xntrdt
        pp = (temp + tmnddt * tmnddt) / temp
        gamma = -xntrdt / (xnddt * (pp - 2.0))
        xnd = xndt / (pp * gamma)
        if edot != 0.0:
            qq = 1.0 - eddot / (edot * gamma)
            ed = edot / (qq * gamma)
        else:
            qq = 1.0
        ovgpp = 1.0 / (gamma * (pp + 1.0))

    logger.debug(
        "%s initialized: xndt=%.6e rad/min^2, isimp=%s",
        "SDP8" if deep else "SGP8",
        xndt,
        isimp,
    )
    half = 0.5 * el.inclo
    return SGP8Params(
        ecco=ecco,
        inclo=el.inclo,
        nodeo=el.nodeo,
        argpo=el.argpo,
        mo=el.mo,
        xnodp=xnodp,
        cosi=cosi,
        sini=sini,
        cosio2=_py_cos(half),
        sinio2=_py_sin(half),
        theta2=theta2,
        tthmun=tthmun,
        unm5th=unm5th,
        unmth2=unmth2,
        a3cof=a3cof,
        xmdt1=xmdt1,
        xgdt1=xgdt1,
        xhdt1=xhdt1,
        xlldot=xlldot,
        omgdt=omgdt,
        xnodot=xnodot,
        xndt=xndt,
        edot=edot,
        gamma=gamma,
        pp=pp,
        qq=qq,
        xnd=xnd,
        ed=ed,
        ovgpp=ovgpp,
        isimp=float(isimp),
    )


def _sgp8_kepler(xmam: ArrayLike, em: ArrayLike) -> tuple[Array, Array, Array]:
    """Solve Kepler's equation for the eccentric anomaly, SGP8 style.

    Returns the sine and cosine of the last iterate and ``1/(1 - e cos E)``.
    """
    zc2 = xmam + em * jnp.sin(xmam) * (1.0 + em * jnp.cos(xmam))

    def evaluate(zc2):
        sine = jnp.sin(zc2)
        cose = jnp.cos(zc2)
        zc5 = 1.0 / (1.0 - em * cose)
        cape = (xmam + em * sine - zc2) * zc5 + zc2
        return sine, cose, zc5, cape

    def cond(state):
        i, zc2, _, _, _, cape = state
        return (i < 10) & (jnp.abs(cape - zc2) > E6A)

    def body(state):
        i, _, _, _, _, cape = state
        zc2 = cape
        return (i + 1, zc2) + evaluate(zc2)

    init = (1, zc2) + evaluate(zc2)
    _, _, sine, cose, zc5, _ = jax.lax.while_loop(cond, body, init)
    return sine, cose, zc5


def sgp8_short_period(
    p: SGP8Params,
    xn: ArrayLike,
    em: ArrayLike,
    xmam: ArrayLike,
    omgasm: ArrayLike,
    xnodes: ArrayLike,
    sini2: ArrayLike,
) -> tuple[Array, Array, Array]:
    """Kepler and short-period steps common to SGP8 and SDP8.

    Args:
        p: Model initialization.
        xn: Mean motion [rad/min].
        em: Eccentricity.
        xmam: Mean anomaly in ``[0, 2pi)`` [rad].
        omgasm: Argument of perigee [rad].
        xnodes: Right ascension of ascending node [rad].
        sini2: Sine of half the inclination used in the orientation.

    Returns:
        tuple[Array, Array, Array]: ``(r, v, status)``.
    """
    sine, cose, zc5 = _sgp8_kepler(xmam, em)

    am = (XKE / xn) ** TOTHRD
    beta2m = 1.0 - em * em
    sinos = jnp.sin(omgasm)
    cosos = jnp.cos(omgasm)
    axnm = em * cosos
    aynm = em * sinos
    pm = am * beta2m
    g1 = 1.0 / pm
    g2 = 0.5 * CK2 * g1
    g3 = g2 * g1
    beta = jnp.sqrt(beta2m)
    g4 = 0.25 * p.a3cof * p.sini
    g5 = 0.25 * p.a3cof * g1
    snf = beta * sine * zc5
    csf = (cose - em) * zc5
    fm = actan(snf, csf)
    snfg = snf * cosos + csf * sinos
    csfg = csf * cosos - snf * sinos
    sn2f2g = 2.0 * snfg * csfg
    cs2f2g = 2.0 * csfg * csfg - 1.0
    ecosf = em * csf
    g10 = fm - xmam + em * snf
    rm = pm / (1.0 + ecosf)
    aovr = am / rm
    g13 = xn * aovr
    g14 = -g13 * aovr
    dr = g2 * (p.unmth2 * cs2f2g - 3.0 * p.tthmun) - g4 * snfg
    diwc = 3.0 * g3 * p.sini * cs2f2g - g5 * aynm
    di = diwc * p.cosi
    sni2du = (
        p.sinio2
        * (
            g3 * (0.5 * (1.0 - 7.0 * p.theta2) * sn2f2g - 3.0 * p.unm5th * g10)
            - g5 * p.sini * csfg * (2.0 + ecosf)
        )
        - 0.5 * g5 * p.theta2 * axnm / p.cosio2
    )
    xlamb = (
        fm
        + omgasm
        + xnodes
        + g3 * (0.5 * (1.0 + 6.0 * p.cosi - 7.0 * p.theta2) * sn2f2g - 3.0 * (p.unm5th + 2.0 * p.cosi) * g10)
        + g5 * p.sini * (p.cosi * axnm / (1.0 + p.cosi) - (2.0 + ecosf) * csfg)
    )
    y4 = sini2 * snfg + csfg * sni2du + 0.5 * snfg * p.cosio2 * di
    y5 = sini2 * csfg - snfg * sni2du + 0.5 * csfg * p.cosio2 * di
    r = rm + dr
    rdot = xn * am * em * snf / beta + g14 * (2.0 * g2 * p.unmth2 * sn2f2g + g4 * csfg)
    rvdot = xn * am * am * beta / rm + g14 * dr + am * g13 * p.sini * diwc

    # Orientation from the half-angle (y4, y5) form
    snlamb = jnp.sin(xlamb)
    cslamb = jnp.cos(xlamb)
    temp = 2.0 * (y5 * snlamb - y4 * cslamb)
    ux = y4 * temp + cslamb
    vx = y5 * temp - snlamb
    temp = 2.0 * (y5 * cslamb + y4 * snlamb)
    uy = -y4 * temp + snlamb
    vy = -y5 * temp + cslamb
    temp = 2.0 * jnp.sqrt(1.0 - y4 * y4 - y5 * y5)
    uz = y4 * temp
    vz = y5 * temp

    u_vec = jnp.stack([ux, uy, uz])
    v_vec = jnp.stack([vx, vy, vz])
    r_km, v_kms = state_vector(r, rdot, rvdot, u_vec, v_vec, XKMPER, VKMPERSEC)
    status = status_code((beta2m < 0.0, 1))
    return r_km, v_kms, status


@jax.jit
def sgp8_propagate(p: SGP8Params, tsince: ArrayLike) -> tuple[Array, Array, Array]:
    """Evaluate SGP8 at *tsince* minutes from epoch."""
    t = tsince
    xmam = mod2pi(p.mo + p.xlldot * t)
    omgasm = p.argpo + p.omgdt * t
    xnodes = p.nodeo + p.xnodot * t

    # Linear drag
    xn_lin = p.xnodp + p.xndt * t
    em_lin = p.ecco + p.edot * t
    z1_lin = 0.5 * p.xndt * t * t

    # Power-law drag; the base is kept positive so the unused branch stays finite.
    temp = 1.0 - p.gamma * t
    temp = jnp.where(p.isimp > 0.5, 1.0, temp)
    temp1 = temp**p.pp
    xn_pow = p.xnodp + p.xnd * (1.0 - temp1)
    em_pow = p.ecco + p.ed * (1.0 - temp**p.qq)
    z1_pow = p.xnd * (t + p.ovgpp * (temp * temp1 - 1.0))

    simple = p.isimp > 0.5
    xn = jnp.where(simple, xn_lin, xn_pow)
    em = jnp.where(simple, em_lin, em_pow)
    z1 = jnp.where(simple, z1_lin, z1_pow)

    z7 = 3.5 * TOTHRD * z1 / p.xnodp
    xmam = mod2pi(xmam + z1 + z7 * p.xmdt1)
    omgasm = omgasm + z7 * p.xgdt1
    xnodes = xnodes + z7 * p.xhdt1

    return sgp8_short_period(p, xn, em, xmam, omgasm, xnodes, p.sinio2)
