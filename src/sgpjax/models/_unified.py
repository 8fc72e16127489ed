"""
Unified (revised SGP4) model.

A single propagator covering both regimes.  It honours the element set's
gravity preset, uses the IAU-82 sidereal angle, and reports numeric
breakdowns through the status codes of :class:`sgpjax.errors.PropagationStatus`.
Orbits with a period at or above the deep-space threshold run the lunar/solar
and resonance updates of ``_deep_space`` on every call; unlike the original
deep-space models the resonance integrator restarts from epoch each time, so
both kernels are pure.

References:

    1. Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
       *Revisiting Spacetrack Report #3*. AIAA 2006-6753.
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

from sgpjax.errors import BadElements, ModelError, PropagationStatus
from sgpjax.models._common import is_deep_period, orientation, solve_kepler, state_vector, status_code
from sgpjax.models._constants import G520_EMSQ, LYDDANE_INCLINATION, THDT, WGS72, EarthGravity
from sgpjax.models._deep_space import (
    RESONANCE_KINDS,
    advance_resonance,
    initial_resonance_state,
    lunar_solar_setup,
    periodic_terms,
    resonant_mean_anomaly,
    secular_drift,
)
from sgpjax.models._types import DeepSpaceParams, MeanElements, UnifiedParams
from sgpjax.time import gmst

logger = logging.getLogger(__name__)

_twopi = 2.0 * _py_pi
_x2o3 = 2.0 / 3.0

# Smallest |1 + cos(i)| allowed in the xlcof denominator.
_TEMP4 = 1.5e-12


# ---------------------------------------------------------------------------
# Initialization (Python floats)
# ---------------------------------------------------------------------------


def unified_init(
    el: MeanElements,
    gravity: EarthGravity = WGS72,
    deep_threshold: float = 225.0,
    catalog_number: int | None = None,
) -> tuple[UnifiedParams, DeepSpaceParams | None]:
    """Initialize the unified model.

    Args:
        el: Epoch elements.
        gravity: Gravity preset supplying ``xke``, ``j2``, ``j3``, ``j4`` and
            the earth radius.
        deep_threshold: Period [min] at or above which the deep-space
            updates are switched on.
        catalog_number: Used only to label errors.

    Returns:
        tuple[UnifiedParams, DeepSpaceParams | None]: The model parameters
        and, for deep-space orbits, the lunar/solar constants.

    Raises:
        ModelError: Status 2 when the mean motion is not positive.  Checked
            before anything else.
        BadElements: If the eccentricity is outside ``[0, 1)``.
    """
    if not el.no_kozai > 0.0:
        raise ModelError(PropagationStatus.MEAN_MOTION, "unified", catalog_number, 0.0)
    if not 0.0 <= el.ecco < 1.0:
        raise BadElements(f"Object {catalog_number}: eccentricity {el.ecco} is outside [0, 1)")

    re = gravity.radiusearthkm
    xke = gravity.xke
    j2 = gravity.j2
    ecco = el.ecco

    eccsq = ecco * ecco
    omeosq = 1.0 - eccsq
    rteosq = _py_sqrt(omeosq)
    cosio = _py_cos(el.inclo)
    sinio = _py_sin(el.inclo)
    cosio2 = cosio * cosio

    # Un-Kozai the mean motion
    ak = (xke / el.no_kozai) ** _x2o3
    d1 = 0.75 * j2 * (3.0 * cosio2 - 1.0) / (rteosq * omeosq)
    delta = d1 / (ak * ak)
    adel = ak * (1.0 - delta * delta - delta * (1.0 / 3.0 + 134.0 * delta * delta / 81.0))
    delta = d1 / (adel * adel)
    no = el.no_kozai / (1.0 + delta)

    ao = (xke / no) ** _x2o3
    po = ao * omeosq
    con42 = 1.0 - 5.0 * cosio2
    con41 = -con42 - cosio2 - cosio2
    posq = po * po
    rp = ao * (1.0 - ecco)
    init_status = PropagationStatus.SUBORBITAL if rp < 1.0 else PropagationStatus.SUCCESS

    isimp = rp < 220.0 / re + 1.0

    # Perigee below 156 km alters s and qzms2t.
    sfour = 78.0 / re + 1.0
    qzms24 = ((120.0 - 78.0) / re) ** 4
    perige = (rp - 1.0) * re
    if perige < 156.0:
        sfour = perige - 78.0
        if perige < 98.0:
            sfour = 20.0
        qzms24 = ((120.0 - sfour) / re) ** 4
        sfour = sfour / re + 1.0

    pinvsq = 1.0 / posq
    tsi = 1.0 / (ao - sfour)
    eta = ao * ecco * tsi
    etasq = eta * eta
    eeta = ecco * eta
    psisq = abs(1.0 - etasq)
    coef = qzms24 * tsi**4
    coef1 = coef / psisq**3.5
    cc2 = (
        coef1
        * no
        * (
            ao * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
            + 0.375 * j2 * tsi / psisq * con41 * (8.0 + 3.0 * etasq * (8.0 + etasq))
        )
    )
    cc1 = el.bstar * cc2
    cc3 = 0.0
    if ecco > 1.0e-4:
        cc3 = -2.0 * coef * tsi * gravity.j3oj2 * no * sinio / ecco
    x1mth2 = 1.0 - cosio2
    cc4 = (
        2.0
        * no
        * coef1
        * ao
        * omeosq
        * (
            eta * (2.0 + 0.5 * etasq)
            + ecco * (0.5 + 2.0 * etasq)
            - j2
            * tsi
            / (ao * psisq)
            * (
                -3.0 * con41 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
                + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * _py_cos(2.0 * el.argpo)
            )
        )
    )
    cc5 = 2.0 * coef1 * ao * omeosq * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)

    cosio4 = cosio2 * cosio2
    temp1 = 1.5 * j2 * pinvsq * no
    temp2 = 0.5 * temp1 * j2 * pinvsq
    temp3 = -0.46875 * gravity.j4 * pinvsq * pinvsq * no
    mdot = no + 0.5 * temp1 * rteosq * con41 + 0.0625 * temp2 * rteosq * (13.0 - 78.0 * cosio2 + 137.0 * cosio4)
    argpdot = (
        -0.5 * temp1 * con42
        + 0.0625 * temp2 * (7.0 - 114.0 * cosio2 + 395.0 * cosio4)
        + temp3 * (3.0 - 36.0 * cosio2 + 49.0 * cosio4)
    )
    xhdot1 = -temp1 * cosio
    nodedot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * cosio2) + 2.0 * temp3 * (3.0 - 7.0 * cosio2)) * cosio

    omgcof = el.bstar * cc3 * _py_cos(el.argpo)
    xmcof = 0.0
    if ecco > 1.0e-4:
        xmcof = -_x2o3 * coef * el.bstar / eeta

    denom = 1.0 + cosio
    if abs(denom) <= _TEMP4:
        denom = _TEMP4
    xlcof = -0.25 * gravity.j3oj2 * sinio * (3.0 + 5.0 * cosio) / denom

    period = _twopi / no
    deep = is_deep_period(period, deep_threshold)
    ds = None
    if deep:
        isimp = True
        ds = lunar_solar_setup(
            el,
            xnq=no,
            aonv=(no / xke) ** _x2o3,
            theta=gmst(el.jd, el.jdfrac),
            thdt=THDT,
            mdot=mdot,
            argpdot=argpdot,
            nodedot=nodedot,
            retrograde_shallow=True,
            g520_emsq=G520_EMSQ,
        )

    d2 = d3 = d4 = t3cof = t4cof = t5cof = 0.0
    if not isimp:
        cc1sq = cc1 * cc1
        d2 = 4.0 * ao * tsi * cc1sq
        temp = d2 * tsi * cc1 / 3.0
        d3 = (17.0 * ao + sfour) * temp
        d4 = 0.5 * temp * ao * tsi * (221.0 * ao + 31.0 * sfour) * cc1
        t3cof = d2 + 2.0 * cc1sq
        t4cof = 0.25 * (3.0 * d3 + cc1 * (12.0 * d2 + 10.0 * cc1sq))
        t5cof = 0.2 * (3.0 * d4 + 12.0 * cc1 * d3 + 6.0 * d2 * d2 + 15.0 * cc1sq * (2.0 * d2 + cc1sq))

    logger.debug(
        "unified initialized: period=%.3f min, deep=%s, resonance=%s, perigee=%.3f km, isimp=%s",
        period,
        deep,
        RESONANCE_KINDS[int(ds.irez)] if ds is not None else "none",
        perige,
        isimp,
    )

    params = UnifiedParams(
        radiusearthkm=re,
        xke=xke,
        j2=j2,
        j3oj2=gravity.j3oj2,
        bstar=el.bstar,
        ecco=ecco,
        inclo=el.inclo,
        nodeo=el.nodeo,
        argpo=el.argpo,
        mo=el.mo,
        no_unkozai=no,
        con41=con41,
        x1mth2=x1mth2,
        x7thm1=7.0 * cosio2 - 1.0,
        eta=eta,
        cc1=cc1,
        cc4=cc4,
        cc5=cc5,
        mdot=mdot,
        argpdot=argpdot,
        nodedot=nodedot,
        omgcof=omgcof,
        xmcof=xmcof,
        nodecf=3.5 * omeosq * xhdot1 * cc1,
        t2cof=1.5 * cc1,
        xlcof=xlcof,
        aycof=-0.5 * gravity.j3oj2 * sinio,
        delmo=(1.0 + eta * _py_cos(el.mo)) ** 3,
        sinmao=_py_sin(el.mo),
        d2=d2,
        d3=d3,
        d4=d4,
        t3cof=t3cof,
        t4cof=t4cof,
        t5cof=t5cof,
        isimp=float(isimp),
        deep=float(deep),
        init_status=float(init_status),
    )
    return params, ds


# ---------------------------------------------------------------------------
# Per-call pieces (JAX)
# ---------------------------------------------------------------------------


def _secular(p: UnifiedParams, t: ArrayLike) -> tuple:
    """Secular gravity and drag: ``(mm, argpm, nodem, tempa, tempe, templ)``."""
    xmdf = p.mo + p.mdot * t
    argpdf = p.argpo + p.argpdot * t
    nodedf = p.nodeo + p.nodedot * t
    t2 = t * t
    nodem = nodedf + p.nodecf * t2
    tempa = 1.0 - p.cc1 * t
    tempe = p.bstar * p.cc4 * t
    templ = p.t2cof * t2

    delomg = p.omgcof * t
    delm = p.xmcof * ((1.0 + p.eta * jnp.cos(xmdf)) ** 3 - p.delmo)
    temp = delomg + delm
    mm_full = xmdf + temp
    t3 = t2 * t
    t4 = t3 * t

    full = p.isimp < 0.5
    mm = jnp.where(full, mm_full, xmdf)
    argpm = jnp.where(full, argpdf - temp, argpdf)
    tempa = jnp.where(full, tempa - p.d2 * t2 - p.d3 * t3 - p.d4 * t4, tempa)
    tempe = jnp.where(full, tempe + p.bstar * p.cc5 * (jnp.sin(mm_full) - p.sinmao), tempe)
    templ = jnp.where(full, templ + p.t3cof * t3 + t4 * (p.t4cof + t * p.t5cof), templ)
    return mm, argpm, nodem, tempa, tempe, templ


def _mean_elements(p: UnifiedParams, nm, em, inclm, mm, argpm, nodem, tempa, tempe, templ) -> tuple:
    """Apply drag to the mean elements and reduce the angles.

    Returns ``(am, nm, em, inclm, mm, argpm, nodem, status)``; status is 2 for
    a non-positive mean motion and 1 for a broken-down eccentricity or a
    semimajor axis below 0.95 earth radii.
    """
    bad_motion = nm <= 0.0
    am = (p.xke / nm) ** _x2o3 * tempa * tempa
    nm = p.xke / am**1.5
    em = em - tempe

    bad_ecc = (em >= 1.0) | (em < -0.001) | (am < 0.95)
    em = jnp.where(em < 1.0e-6, 1.0e-6, em)
    mm = mm + p.no_unkozai * templ
    xlm = mm + argpm + nodem

    nodem = jnp.fmod(nodem, _twopi)
    argpm = jnp.fmod(argpm, _twopi)
    xlm = jnp.fmod(xlm, _twopi)
    mm = jnp.fmod(xlm - argpm - nodem, _twopi)

    status = status_code((bad_motion, 2), (bad_ecc, 1))
    return am, nm, em, inclm, mm, argpm, nodem, status


def unified_periodics(
    ds: DeepSpaceParams,
    t: ArrayLike,
    ep: ArrayLike,
    inclp: ArrayLike,
    nodep: ArrayLike,
    argpp: ArrayLike,
    mp: ArrayLike,
) -> tuple[Array, Array, Array, Array, Array]:
    """Apply the lunar/solar periodics to the mean elements.

    The terms are evaluated afresh at *t*.  Below 0.2 rad of perturbed
    inclination the node and perigee corrections are applied in the Lyddane
    form, which stays finite as the inclination goes to zero.

    Returns:
        ``(ep, inclp, nodep, argpp, mp)`` after correction.
    """
    per = periodic_terms(ds, t)
    pgh = per.sghs + per.sghl
    ph = per.shs + per.shl

    inclp = inclp + per.pinc
    ep = ep + per.pe
    sinip = jnp.sin(inclp)
    cosip = jnp.cos(inclp)

    # Direct
    ph_d = ph / sinip
    pgh_d = pgh - cosip * ph_d
    argp_d = argpp + pgh_d
    node_d = nodep + ph_d
    mp_d = mp + per.pl

    # Lyddane
    sinop = jnp.sin(nodep)
    cosop = jnp.cos(nodep)
    alfdp = sinip * sinop + ph * cosop + per.pinc * cosip * sinop
    betdp = sinip * cosop - ph * sinop + per.pinc * cosip * cosop
    xnoh = jnp.fmod(nodep, _twopi)
    xls = mp + argpp + per.pl + pgh + (cosip - per.pinc * sinip) * xnoh
    node_l = jnp.arctan2(alfdp, betdp)
    node_l = jnp.where(
        jnp.abs(xnoh - node_l) > _py_pi,
        jnp.where(node_l < xnoh, node_l + _twopi, node_l - _twopi),
        node_l,
    )
    mp_l = mp + per.pl
    argp_l = xls - mp_l - cosip * node_l

    direct = inclp >= LYDDANE_INCLINATION
    return (
        ep,
        inclp,
        jnp.where(direct, node_d, node_l),
        jnp.where(direct, argp_d, argp_l),
        jnp.where(direct, mp_d, mp_l),
    )


def _position_velocity(
    p: UnifiedParams,
    am: ArrayLike,
    nm: ArrayLike,
    ep: ArrayLike,
    xincp: ArrayLike,
    argpp: ArrayLike,
    nodep: ArrayLike,
    mp: ArrayLike,
    aycof: ArrayLike,
    xlcof: ArrayLike,
    con41: ArrayLike,
    x1mth2: ArrayLike,
    x7thm1: ArrayLike,
) -> tuple[Array, Array, Array, Array]:
    """Long-period, Kepler and short-period steps.

    Returns ``(r, v, pl, mrt)``; the last two feed the status checks.
    """
    sinip = jnp.sin(xincp)
    cosip = jnp.cos(xincp)

    # Long period periodics
    axnl = ep * jnp.cos(argpp)
    temp = 1.0 / (am * (1.0 - ep * ep))
    aynl = ep * jnp.sin(argpp) + temp * aycof
    xl = mp + argpp + nodep + temp * xlcof * axnl

    u = jnp.fmod(xl - nodep, _twopi)
    _, sineo1, coseo1 = solve_kepler(u, axnl, aynl, tol=1.0e-12, clamp=0.95)

    # Short period preliminary quantities
    ecose = axnl * coseo1 + aynl * sineo1
    esine = axnl * sineo1 - aynl * coseo1
    el2 = axnl * axnl + aynl * aynl
    pl = am * (1.0 - el2)
    rl = am * (1.0 - ecose)
    rdotl = jnp.sqrt(am) * esine / rl
    rvdotl = jnp.sqrt(pl) / rl
    betal = jnp.sqrt(1.0 - el2)
    temp = esine / (1.0 + betal)
    sinu = am / rl * (sineo1 - aynl - axnl * temp)
    cosu = am / rl * (coseo1 - axnl + aynl * temp)
    su = jnp.arctan2(sinu, cosu)
    sin2u = (cosu + cosu) * sinu
    cos2u = 1.0 - 2.0 * sinu * sinu
    temp = 1.0 / pl
    temp1 = 0.5 * p.j2 * temp
    temp2 = temp1 * temp

    # Short periodics
    mrt = rl * (1.0 - 1.5 * temp2 * betal * con41) + 0.5 * temp1 * x1mth2 * cos2u
    su = su - 0.25 * temp2 * x7thm1 * sin2u
    xnode = nodep + 1.5 * temp2 * cosip * sin2u
    xinc = xincp + 1.5 * temp2 * cosip * sinip * cos2u
    mvt = rdotl - nm * temp1 * x1mth2 * sin2u / p.xke
    rvdot = rvdotl + nm * temp1 * (x1mth2 * cos2u + 1.5 * con41) / p.xke

    u_vec, v_vec = orientation(su, xnode, xinc)
    r_km, v_kms = state_vector(mrt, mvt, rvdot, u_vec, v_vec, p.radiusearthkm, p.radiusearthkm * p.xke / 60.0)
    return r_km, v_kms, pl, mrt


@jax.jit
def unified_near(p: UnifiedParams, tsince: ArrayLike) -> tuple[Array, Array, Array]:
    """Evaluate the unified model for a near-earth orbit at *tsince* minutes."""
    t = tsince
    mm, argpm, nodem, tempa, tempe, templ = _secular(p, t)
    am, nm, em, inclm, mm, argpm, nodem, status = _mean_elements(
        p, p.no_unkozai, p.ecco, p.inclo, mm, argpm, nodem, tempa, tempe, templ
    )
    r, v, pl, mrt = _position_velocity(
        p, am, nm, em, inclm, argpm, nodem, mm, p.aycof, p.xlcof, p.con41, p.x1mth2, p.x7thm1
    )
    status = jnp.where(status != 0, status, status_code((pl < 0.0, 4), (mrt < 1.0, 6)))
    return r, v, status


@jax.jit
def unified_deep(p: UnifiedParams, ds: DeepSpaceParams, tsince: ArrayLike) -> tuple[Array, Array, Array]:
    """Evaluate the unified model for a deep-space orbit at *tsince* minutes."""
    t = tsince
    mm, argpm, nodem, tempa, tempe, templ = _secular(p, t)

    em, inclm, argpm, nodem, mm = secular_drift(ds, t, p.ecco, p.inclo, argpm, nodem, mm)
    xn, xl, _ = advance_resonance(ds, initial_resonance_state(ds), t)
    resonant = ds.irez > 0.5
    nm = jnp.where(resonant, xn, p.no_unkozai)
    mm = jnp.where(resonant, resonant_mean_anomaly(ds, xl, nodem, argpm, t), mm)

    am, nm, em, inclm, mm, argpm, nodem, status = _mean_elements(
        p, nm, em, inclm, mm, argpm, nodem, tempa, tempe, templ
    )

    ep, xincp, nodep, argpp, mp = unified_periodics(ds, t, em, inclm, nodem, argpm, mm)
    flip = xincp < 0.0
    xincp = jnp.where(flip, -xincp, xincp)
    nodep = jnp.where(flip, nodep + _py_pi, nodep)
    argpp = jnp.where(flip, argpp - _py_pi, argpp)
    bad_ep = (ep < 0.0) | (ep > 1.0)

    # Coefficients that depend on the perturbed inclination
    sinip = jnp.sin(xincp)
    cosip = jnp.cos(xincp)
    denom = 1.0 + cosip
    denom = jnp.where(jnp.abs(denom) > _TEMP4, denom, _TEMP4)
    aycof = -0.5 * p.j3oj2 * sinip
    xlcof = -0.25 * p.j3oj2 * sinip * (3.0 + 5.0 * cosip) / denom
    cosisq = cosip * cosip

    r, v, pl, mrt = _position_velocity(
        p,
        am,
        nm,
        ep,
        xincp,
        argpp,
        nodep,
        mp,
        aycof,
        xlcof,
        3.0 * cosisq - 1.0,
        1.0 - cosisq,
        7.0 * cosisq - 1.0,
    )
    status = jnp.where(status != 0, status, status_code((bad_ep, 3), (pl < 0.0, 4), (mrt < 1.0, 6)))
    return r, v, status
