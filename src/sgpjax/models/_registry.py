"""
Name-to-model dispatch for the propagator family.

Every model is registered with the regime it accepts, a Python-time
initializer and a runner around its jitted kernel.  :func:`run_model` ties
them together with the element set's initialization cache and turns kernel
status codes into exceptions or warnings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, NamedTuple

import jax.numpy as jnp
from jax import Array

from sgpjax import config
from sgpjax.errors import ModelError, PropagationStatus, WrongRegime
from sgpjax.models._common import to_device
from sgpjax.models._constants import GRAVITY_MODELS
from sgpjax.models._deep_space import (
    initial_periodic_state,
    initial_resonance_state,
    sdp4_init,
    sdp4_propagate,
    sdp8_init,
    sdp8_propagate,
)
from sgpjax.models._near_earth import (
    sgp4_init,
    sgp4_propagate,
    sgp8_init,
    sgp8_propagate,
    sgp_init,
    sgp_propagate,
)
from sgpjax.models._unified import unified_deep, unified_init, unified_near

logger = logging.getLogger(__name__)


@dataclass
class Initialization:
    """One cached model initialization of an element set.

    Attributes:
        version: Element-set version the entry was built from.
        params: Model parameters (on device).
        deep: Deep-space constants, or ``None`` for a near-earth model.
        state: ``(ResonanceState, PeriodicState)`` carried between calls by
            the original deep-space models; ``None`` otherwise.
    """

    version: int
    params: Any
    deep: Any = None
    state: tuple | None = None


class _Model(NamedTuple):
    regime: str | None
    init: Callable[[Any], Initialization]
    run: Callable[[Initialization, Array], tuple[Array, Array, Array]]


# ---------------------------------------------------------------------------
# Initializers
# ---------------------------------------------------------------------------


def _near(init):
    def build(elements) -> Initialization:
        return Initialization(elements.version, to_device(init(elements.mean_elements())))

    return build


def _legacy_deep(init):
    def build(elements) -> Initialization:
        p, ds = init(elements.mean_elements())
        state = (initial_resonance_state(ds), initial_periodic_state())
        return Initialization(elements.version, to_device(p), to_device(ds), to_device(state))

    return build


def _init_unified(elements) -> Initialization:
    p, ds = unified_init(
        elements.mean_elements(),
        GRAVITY_MODELS[elements.gravity],
        config.get_deep_space_period(),
        elements.catalog_number,
    )
    if p.init_status:
        logger.warning(
            "Object %s: %s", elements.catalog_number, PropagationStatus(int(p.init_status)).message
        )
    return Initialization(elements.version, to_device(p), None if ds is None else to_device(ds))


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------


def _run_near(kernel):
    def run(entry: Initialization, t: Array):
        return kernel(entry.params, t)

    return run


def _run_legacy_deep(kernel):
    def run(entry: Initialization, t: Array):
        res, per = entry.state
        r, v, status, res, per = kernel(entry.params, entry.deep, res, per, t)
        entry.state = (res, per)
        return r, v, status

    return run


def _run_unified(entry: Initialization, t: Array):
    if entry.deep is None:
        return unified_near(entry.params, t)
    return unified_deep(entry.params, entry.deep, t)


_MODELS: dict[str, _Model] = {
    "simple": _Model("near", _near(sgp_init), _run_near(sgp_propagate)),
    "near-earth-precise": _Model("near", _near(sgp4_init), _run_near(sgp4_propagate)),
    "near-earth-highprec": _Model("near", _near(sgp8_init), _run_near(sgp8_propagate)),
    "deep-space-4": _Model("deep", _legacy_deep(sdp4_init), _run_legacy_deep(sdp4_propagate)),
    "deep-space-8": _Model("deep", _legacy_deep(sdp8_init), _run_legacy_deep(sdp8_propagate)),
    "unified": _Model(None, _init_unified, _run_unified),
}

# Meta-models: (near-earth member, deep-space member)
_META_MODELS = {
    "model": ("unified", "unified"),
    "model4r": ("unified", "unified"),
    "model4": ("near-earth-precise", "deep-space-4"),
    "model8": ("near-earth-highprec", "deep-space-8"),
}

NOOP = "no-op"

MODEL_NAMES: tuple[str, ...] = (*_MODELS, NOOP, *_META_MODELS)
"""Every name accepted by :func:`resolve_model`."""


def _check_name(name: str) -> str:
    if name not in MODEL_NAMES:
        raise ValueError(f"Unknown model '{name}'. Must be one of: {', '.join(MODEL_NAMES)}")
    return name


def resolve_model(name: str, elements) -> str:
    """Return the concrete model *name* stands for on *elements*.

    Meta-models pick their member by the regime of the element set; every
    other name is returned unchanged.

    Raises:
        ValueError: If *name* is not in :data:`MODEL_NAMES`.
    """
    _check_name(name)
    members = _META_MODELS.get(name)
    if members is None:
        return name
    near, deep = members
    if near == deep:
        return near
    return deep if elements.is_deep else near


def run_model(elements, name: str, tsince: float) -> tuple[Array, Array, PropagationStatus]:
    """Propagate *elements* with model *name* to *tsince* minutes from epoch.

    Order of checks: the model name, the unified model's mean-motion check,
    element validation, a zero mean motion for the remaining models, then the
    regime check.  Nothing is cached until all of them have passed.

    Returns:
        tuple[Array, Array, PropagationStatus]: Position [km], velocity
        [km/s] and the (non-fatal) status.  When the call itself sets no
        code, a sub-orbital unified initialization is returned as
        ``SUBORBITAL``.

    Raises:
        ValueError: Unknown model name.
        BadElements: The element set fails validation.
        WrongRegime: The model does not accept the element set's regime.
        ModelError: The model broke down.
    """
    _check_name(name)
    dtype = config.get_dtype()
    if name == NOOP:
        zero = jnp.zeros(3, dtype=dtype)
        return zero, zero, PropagationStatus.SUCCESS

    if _META_MODELS.get(name, (name,))[0] == "unified" and not elements.mean_motion > 0.0:
        raise ModelError(PropagationStatus.MEAN_MOTION, "unified", elements.catalog_number, tsince)
    elements.validate()
    if elements.mean_motion == 0.0:
        raise ModelError(PropagationStatus.MEAN_MOTION, name, elements.catalog_number, tsince)

    concrete = resolve_model(name, elements)
    model = _MODELS[concrete]
    if model.regime is not None:
        deep = elements.is_deep
        if deep != (model.regime == "deep"):
            raise WrongRegime(concrete, elements.catalog_number, elements.period / 60.0, deep)

    entry = elements._initialization(concrete, model.init)
    r, v, status = model.run(entry, jnp.asarray(tsince, dtype=dtype))

    status = PropagationStatus(int(status))
    if status.is_fatal:
        raise ModelError(status, concrete, elements.catalog_number, tsince)
    if status != PropagationStatus.SUCCESS:
        logger.warning(
            "Object %s, %s at %.3f min: %s", elements.catalog_number, concrete, tsince, status.message
        )
    elif getattr(entry.params, "init_status", 0.0) == PropagationStatus.SUBORBITAL:
        # already logged once at initialization
        status = PropagationStatus.SUBORBITAL
    return r, v, status
