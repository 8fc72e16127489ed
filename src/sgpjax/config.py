"""Module-wide configuration for sgpjax.

Provides ``set_dtype`` and ``get_dtype`` to control the float dtype used by
the propagation kernels, plus the default gravity preset and the period that
separates near-earth from deep-space orbits.

The default dtype is ``jnp.float64``: the analytic models are only meaningful
at double precision, so importing sgpjax enables JAX's 64-bit mode
(``jax_enable_x64``).  Lower precisions remain selectable for experiments.

``get_dtype()`` is read while a kernel is traced, so the dtype is fixed per
compiled kernel; inputs of another dtype trigger a retrace.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

_VALID_DTYPES = (jnp.float16, jnp.bfloat16, jnp.float32, jnp.float64)

jax.config.update("jax_enable_x64", True)

_dtype = jnp.float64

_default_gravity = "wgs72"

_deep_space_period = 225.0


def set_dtype(dtype) -> None:
    """Select the float dtype of positions, velocities and times.

    Kernels already compiled keep the dtype they were traced with; new
    inputs of a different dtype cause a retrace.  Choosing ``jnp.float64``
    also switches on ``jax_enable_x64``.

    Args:
        dtype: A JAX float dtype (``float16``, ``bfloat16``, ``float32`` or
            ``float64``).

    Raises:
        ValueError: If *dtype* is not a supported float type.
    """
    global _dtype
    if dtype not in _VALID_DTYPES:
        raise ValueError(
            f"Unsupported dtype {dtype}. Must be a float dtype: float16, bfloat16, float32 or float64"
        )
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Return the float dtype used for propagation (default ``jnp.float64``)."""
    return _dtype


def set_default_gravity(name: str) -> None:
    """Set the gravity preset given to newly created element sets.

    Args:
        name: One of ``"wgs72old"``, ``"wgs72"`` or ``"wgs84"``, or one of
            their aliases ``"721"``, ``"72"``, ``"84"``.  The canonical name
            is stored.

    Raises:
        ValueError: If *name* is not a known preset.
    """
    from sgpjax.models._constants import resolve_gravity

    global _default_gravity
    _default_gravity = resolve_gravity(name)


def get_default_gravity() -> str:
    """Return the gravity preset given to newly created element sets.

    Returns:
        str: Preset name (default ``"wgs72"``).
    """
    return _default_gravity


def set_deep_space_period(minutes: float) -> None:
    """Set the orbital period at which an orbit is treated as deep-space.

    Args:
        minutes: Period threshold in minutes. Orbits with a period greater
            than or equal to this value use the deep-space models.

    Raises:
        ValueError: If *minutes* is not positive.
    """
    global _deep_space_period
    if not minutes > 0.0:
        raise ValueError(f"Deep-space period must be positive, got {minutes}")
    _deep_space_period = float(minutes)


def get_deep_space_period() -> float:
    """Return the deep-space period threshold in minutes (default 225)."""
    return _deep_space_period
