"""
Helpers shared by every model of the propagator family.

Python-time pieces (mean-motion recovery, the Kozai relation, the regime
test) run during initialization on plain floats.  The JAX pieces (angle
reduction, the Kepler solve, orientation vectors, output scaling) are traced
inside the jitted model kernels.
"""

from __future__ import annotations

from math import cos as _py_cos
from math import inf as _py_inf
from math import pi as _py_pi
from math import sqrt as _py_sqrt

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from sgpjax.config import get_dtype
from sgpjax.models._constants import CK2, TOTHRD, XKE

_twopi = 2.0 * _py_pi


# ---------------------------------------------------------------------------
# Python-time helpers
# ---------------------------------------------------------------------------


def recover_mean_motion(
    no_kozai: float,
    ecco: float,
    inclo: float,
    ck2: float = CK2,
    xke: float = XKE,
) -> tuple[float, float]:
    """Remove the first-order J2 bias from a published mean motion.

    Published element sets give the Kozai mean motion.  This recovers the
    Brouwer mean motion and semimajor axis the drag and gravity terms are
    built on.

    Args:
        no_kozai: Kozai mean motion [rad/min].
        ecco: Eccentricity.
        inclo: Inclination [rad].
        ck2: Half of J2 (in earth radii squared).
        xke: sqrt(GM) in earth radii and minutes.

    Returns:
        tuple[float, float]: ``(xnodp, aodp)``, the recovered mean motion
        [rad/min] and semimajor axis [earth radii].
    """
    a1 = (xke / no_kozai) ** TOTHRD
    cosio = _py_cos(inclo)
    betao2 = 1.0 - ecco * ecco
    betao = _py_sqrt(betao2)
    temp = 1.5 * ck2 * (3.0 * cosio * cosio - 1.0) / (betao * betao2)
    del1 = temp / (a1 * a1)
    ao = a1 * (1.0 - del1 * (0.5 * TOTHRD + del1 * (1.0 + 134.0 / 81.0 * del1)))
    delo = temp / (ao * ao)
    xnodp = no_kozai / (1.0 + delo)
    aodp = ao / (1.0 - delo)
    return xnodp, aodp


def kozai_mean_motion(
    xnodp: float,
    ecco: float,
    inclo: float,
    ck2: float = CK2,
    xke: float = XKE,
    tol: float = 1.0e-15,
) -> float:
    """Return the Kozai mean motion whose recovered value is *xnodp*.

    Inverse of :func:`recover_mean_motion`, solved by fixed-point iteration
    on ``n = xnodp * (1 + delo(n))``.
    """
    n = xnodp
    for _ in range(50):
        recovered, _ = recover_mean_motion(n, ecco, inclo, ck2, xke)
        step = xnodp - recovered
        n += step
        if abs(step) <= tol * xnodp:
            break
    return n


def legacy_period_minutes(no_kozai: float, ecco: float, inclo: float) -> float:
    """Orbital period [min] from the recovered mean motion, legacy constants."""
    if not no_kozai > 0.0:
        return _py_inf
    xnodp, _ = recover_mean_motion(no_kozai, ecco, inclo)
    return _twopi / xnodp


def is_deep_period(period_minutes: float, threshold: float) -> bool:
    """Return True when *period_minutes* puts an orbit in the deep-space regime."""
    return period_minutes >= threshold


def to_device(params):
    """Convert a NamedTuple of floats into JAX scalars of the configured dtype."""
    dtype = get_dtype()
    return jax.tree_util.tree_map(lambda x: jnp.asarray(x, dtype=dtype), params)


# ---------------------------------------------------------------------------
# JAX helpers
# ---------------------------------------------------------------------------


def mod2pi(x: ArrayLike) -> Array:
    """Reduce an angle to ``[0, 2pi)``."""
    return x - _twopi * jnp.floor(x / _twopi)


def actan(y: ArrayLike, x: ArrayLike) -> Array:
    """Four-quadrant arctangent in ``[0, 2pi)``."""
    a = jnp.arctan2(y, x)
    return jnp.where(a < 0.0, a + _twopi, a)


def solve_kepler(
    u: ArrayLike,
    axn: ArrayLike,
    ayn: ArrayLike,
    tol: float,
    clamp: float | None = None,
    max_iter: int = 10,
) -> tuple[Array, Array, Array]:
    """Solve Kepler's equation in eccentricity-vector form.

    Finds ``E`` with ``u = E - axn*sin(E) + ayn*cos(E)`` by Newton-Raphson
    steps starting from ``E = u``.  Iteration stops once a step is below
    *tol* or after *max_iter* steps.

    Args:
        u: Mean argument of latitude minus node [rad].
        axn: ``e*cos(argp)`` component of the eccentricity vector.
        ayn: ``e*sin(argp)`` component of the eccentricity vector.
        tol: Step size below which the solution is accepted [rad].
        clamp: Optional bound on the magnitude of any single step.
        max_iter: Maximum number of steps.

    Returns:
        tuple[Array, Array, Array]: ``(eo1, sineo1, coseo1)``. ``eo1`` is the
        eccentric longitude ``E + argp`` [rad]; the sine and cosine are those
        evaluated at the start of the last step, before its correction.
    """
    u = jnp.asarray(u)

    def cond(state):
        i, _, delta, _, _ = state
        return (i < max_iter) & (jnp.abs(delta) >= tol)

    def body(state):
        i, eo1, _, _, _ = state
        sineo1 = jnp.sin(eo1)
        coseo1 = jnp.cos(eo1)
        delta = (u - ayn * coseo1 + axn * sineo1 - eo1) / (1.0 - coseo1 * axn - sineo1 * ayn)
        if clamp is not None:
            delta = jnp.clip(delta, -clamp, clamp)
        return i + 1, eo1 + delta, delta, sineo1, coseo1

    init = (0, u, jnp.ones_like(u), jnp.sin(u), jnp.cos(u))
    _, eo1, _, sineo1, coseo1 = jax.lax.while_loop(cond, body, init)
    return eo1, sineo1, coseo1


def orientation(uk: ArrayLike, xnodek: ArrayLike, xinck: ArrayLike) -> tuple[Array, Array]:
    """Unit position (U) and in-plane normal (V) vectors of the orbit."""
    sinuk = jnp.sin(uk)
    cosuk = jnp.cos(uk)
    sinik = jnp.sin(xinck)
    cosik = jnp.cos(xinck)
    sinnok = jnp.sin(xnodek)
    cosnok = jnp.cos(xnodek)
    xmx = -sinnok * cosik
    xmy = cosnok * cosik
    ux = xmx * sinuk + cosnok * cosuk
    uy = xmy * sinuk + sinnok * cosuk
    uz = sinik * sinuk
    vx = xmx * cosuk - cosnok * sinuk
    vy = xmy * cosuk - sinnok * sinuk
    vz = sinik * cosuk
    return jnp.stack([ux, uy, uz]), jnp.stack([vx, vy, vz])


def state_vector(
    r: ArrayLike,
    rdot: ArrayLike,
    rfdot: ArrayLike,
    u_vec: Array,
    v_vec: Array,
    radius_km: float,
    vkmpersec: float,
) -> tuple[Array, Array]:
    """Scale canonical radius and rates into position [km] and velocity [km/s]."""
    position = r * u_vec * radius_km
    velocity = (rdot * u_vec + rfdot * v_vec) * vkmpersec
    return position, velocity


def status_code(*conditions: tuple[ArrayLike, int]) -> Array:
    """Return the code of the first true condition, or 0.

    Args:
        *conditions: ``(flag, code)`` pairs, highest priority first.
    """
    status = jnp.asarray(0, dtype=jnp.int32)
    for flag, code in reversed(conditions):
        status = jnp.where(flag, code, status)
    return status
