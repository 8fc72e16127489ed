"""
Exceptions and propagation status codes raised by the sgpjax propagators.

Two families are defined:

- precondition errors (``BadElements``, ``WrongRegime``), raised before any
  model runs and never worth retrying with the same input;
- numeric breakdowns reported by the models themselves (``ModelError``),
  each carrying a ``PropagationStatus``.
"""

from __future__ import annotations

from enum import IntEnum


class PropagationStatus(IntEnum):
    """Status of a single propagation.

    Each member carries a human-readable ``message``. Codes 1-4 mean the
    analytic theory broke down and no state vector is produced; codes 5 and
    6 are informational and accompany a (physically meaningless) vector.
    """

    SUCCESS = 0
    MEAN_ELEMENTS = 1
    MEAN_MOTION = 2
    PERTURBED_ECCENTRICITY = 3
    SEMI_LATUS_RECTUM = 4
    SUBORBITAL = 5
    DECAYED = 6

    @property
    def message(self) -> str:
        return _MESSAGES[self]

    @property
    def is_fatal(self) -> bool:
        return 1 <= self.value <= 4


_MESSAGES = {
    PropagationStatus.SUCCESS: "Success",
    PropagationStatus.MEAN_ELEMENTS: "Mean eccentricity < 0 or > 1, or a < .95",
    PropagationStatus.MEAN_MOTION: "Mean motion < 0.0",
    PropagationStatus.PERTURBED_ECCENTRICITY: "Instantaneous eccentricity < 0 or > 1",
    PropagationStatus.SEMI_LATUS_RECTUM: "Semi-latus rectum < 0",
    PropagationStatus.SUBORBITAL: "Epoch elements are sub-orbital",
    PropagationStatus.DECAYED: "Satellite has decayed",
}


class BadElements(ValueError):
    """Element set fails validation (eccentricity or mean motion out of range)."""


class WrongRegime(ValueError):
    """A near-earth model was used on a deep-space orbit, or vice versa."""

    def __init__(self, model: str, catalog_number, period_minutes: float, deep: bool):
        self.model = model
        self.catalog_number = catalog_number
        self.period_minutes = period_minutes
        self.deep = deep
        regime = "deep-space" if deep else "near-earth"
        super().__init__(
            f"Model '{model}' cannot propagate object {catalog_number}: "
            f"period {period_minutes:.3f} min is {regime}"
        )


class ModelError(RuntimeError):
    """The analytic model broke down while propagating.

    Attributes:
        status: The fatal ``PropagationStatus``.
        model: Name of the model that failed.
        catalog_number: Identity of the element set.
        tsince: Minutes since epoch of the failed evaluation.
    """

    def __init__(self, status: PropagationStatus, model: str, catalog_number, tsince: float):
        self.status = PropagationStatus(status)
        self.model = model
        self.catalog_number = catalog_number
        self.tsince = tsince
        super().__init__(
            f"{model} failed for object {catalog_number} at {tsince:.6f} min "
            f"since epoch: {self.status.message} (code {int(self.status)})"
        )
