"""Element sets and the state vectors propagated from them.

:class:`ElementSet` holds one published set of mean elements, already
converted to internal units (radians, minutes), together with the identity
fields carried through from the catalog.  It lazily initializes and caches
each model it is propagated with; assigning any field a model depends on
bumps :attr:`ElementSet.version`, which invalidates those caches.

Examples:
    ```python
    from datetime import datetime
    from sgpjax import ElementSet

    iss = ElementSet(
        epoch=datetime(2008, 9, 20, 12, 25, 40),
        mean_motion=0.0686,
        eccentricity=0.0006703,
        inclination=0.9013,
        raan=4.3190,
        arg_perigee=2.2783,
        mean_anomaly=5.6725,
        bstar=-1.1606e-5,
        catalog_number=25544,
    )
    sv = iss.propagate("unified", 90.0)
    sv.position  # km, TEME
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from math import pi as _py_pi
from math import sqrt as _py_sqrt

from jax import Array

from sgpjax import config
from sgpjax.constants import GM_EARTH_KM, R_EARTH_KM
from sgpjax.errors import BadElements, PropagationStatus
from sgpjax.models._common import is_deep_period, legacy_period_minutes
from sgpjax.models._constants import resolve_gravity
from sgpjax.models._registry import Initialization, run_model
from sgpjax.models._types import MeanElements
from sgpjax.time import datetime_to_jd, days_since_1950, minutes_since

logger = logging.getLogger(__name__)

_twopi = 2.0 * _py_pi

_MODEL_FIELDS = frozenset(
    {
        "epoch",
        "mean_motion",
        "eccentricity",
        "inclination",
        "raan",
        "arg_perigee",
        "mean_anomaly",
        "first_derivative",
        "second_derivative",
        "bstar",
        "gravity",
    }
)


@dataclass(frozen=True)
class StateVector:
    """Position and velocity of an object at one instant.

    Attributes:
        position: Position in the TEME frame [km], shape ``(3,)``.
        velocity: Velocity in the TEME frame [km/s], shape ``(3,)``.
        tsince: Minutes since the element-set epoch.
        status: Informational status of the propagation (``SUCCESS``,
            ``SUBORBITAL`` or ``DECAYED``).
    """

    position: Array
    velocity: Array
    tsince: float
    status: PropagationStatus = PropagationStatus.SUCCESS


class ElementSet:
    """A set of mean orbital elements at an epoch.

    Args:
        epoch: Epoch of the elements, UTC.  Naive datetimes are taken as UTC.
        mean_motion: Mean motion as published (Kozai form) [rad/min].
        eccentricity: Eccentricity, in ``[0, 1)``.
        inclination: Inclination [rad].
        raan: Right ascension of the ascending node [rad].
        arg_perigee: Argument of perigee [rad].
        mean_anomaly: Mean anomaly [rad].
        first_derivative: First time derivative of mean motion divided by
            two [rad/min^2].
        second_derivative: Second time derivative of mean motion divided by
            six [rad/min^3].
        bstar: B* drag term [1/earth radii].
        gravity: Gravity preset used by the unified model (``"wgs72old"``,
            ``"wgs72"``, ``"wgs84"`` or their aliases ``"721"``, ``"72"``,
            ``"84"``).  Defaults to :func:`sgpjax.config.get_default_gravity`.
        catalog_number: Catalog number of the object.
        classification: Security classification character.
        international_designator: Launch designator.
        element_number: Element set number.
        revolution_number: Revolution number at epoch.
        ephemeris_type: Ephemeris type.
        name: Common name of the object.
    """

    def __init__(
        self,
        epoch: datetime,
        mean_motion: float,
        eccentricity: float,
        inclination: float,
        raan: float,
        arg_perigee: float,
        mean_anomaly: float,
        first_derivative: float = 0.0,
        second_derivative: float = 0.0,
        bstar: float = 0.0,
        gravity: str | None = None,
        *,
        catalog_number: int | None = None,
        classification: str = "U",
        international_designator: str = "",
        element_number: int = 0,
        revolution_number: int = 0,
        ephemeris_type: int = 0,
        name: str = "",
    ) -> None:
        object.__setattr__(self, "version", 0)
        object.__setattr__(self, "_cache", {})
        self.epoch = epoch
        self.mean_motion = float(mean_motion)
        self.eccentricity = float(eccentricity)
        self.inclination = float(inclination)
        self.raan = float(raan)
        self.arg_perigee = float(arg_perigee)
        self.mean_anomaly = float(mean_anomaly)
        self.first_derivative = float(first_derivative)
        self.second_derivative = float(second_derivative)
        self.bstar = float(bstar)
        self.gravity = config.get_default_gravity() if gravity is None else gravity

        self.catalog_number = catalog_number
        self.classification = classification
        self.international_designator = international_designator
        self.element_number = element_number
        self.revolution_number = revolution_number
        self.ephemeris_type = ephemeris_type
        self.name = name
        object.__setattr__(self, "version", 0)

    def __setattr__(self, attr, value) -> None:
        if attr == "gravity":
            value = resolve_gravity(value)
        object.__setattr__(self, attr, value)
        if attr in _MODEL_FIELDS:
            object.__setattr__(self, "version", self.version + 1)

    # ------------------------------------------------------------------
    # Validation and model input
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Check the elements every model relies on.

        Raises:
            BadElements: If the eccentricity is outside ``[0, 1)`` or the
                mean motion is negative.
        """
        if not 0.0 <= self.eccentricity < 1.0:
            raise BadElements(
                f"Object {self.catalog_number}: eccentricity {self.eccentricity} is outside [0, 1)"
            )
        if not self.mean_motion >= 0.0:
            raise BadElements(
                f"Object {self.catalog_number}: mean motion {self.mean_motion} rad/min is negative"
            )

    def mean_elements(self) -> MeanElements:
        """Return the numeric elements in the form the model initializers take."""
        jd, jdfrac = datetime_to_jd(self.epoch)
        return MeanElements(
            no_kozai=self.mean_motion,
            ecco=self.eccentricity,
            inclo=self.inclination,
            nodeo=self.raan,
            argpo=self.arg_perigee,
            mo=self.mean_anomaly,
            ndot=self.first_derivative,
            nddot=self.second_derivative,
            bstar=self.bstar,
            jd=jd,
            jdfrac=jdfrac,
            ds50=days_since_1950(self.epoch),
        )

    # ------------------------------------------------------------------
    # Derived geometry (legacy constants)
    # ------------------------------------------------------------------

    @property
    def period(self) -> float:
        """Orbital period from the recovered mean motion [s]."""
        return 60.0 * legacy_period_minutes(self.mean_motion, self.eccentricity, self.inclination)

    @property
    def is_deep(self) -> bool:
        """True if the period is at or above the deep-space threshold."""
        minutes = legacy_period_minutes(self.mean_motion, self.eccentricity, self.inclination)
        return is_deep_period(minutes, config.get_deep_space_period())

    @property
    def semimajor(self) -> float:
        """Semimajor axis [km]."""
        return (self.period / _twopi) ** (2.0 / 3.0) * GM_EARTH_KM ** (1.0 / 3.0)

    @property
    def apoapsis(self) -> float:
        """Apoapsis distance from the earth's center [km]."""
        return (1.0 + self.eccentricity) * self.semimajor

    @property
    def periapsis(self) -> float:
        """Periapsis distance from the earth's center [km]."""
        return (1.0 - self.eccentricity) * self.semimajor

    @property
    def apogee(self) -> float:
        """Apogee height above the equatorial radius [km]."""
        return self.apoapsis - R_EARTH_KM

    @property
    def perigee(self) -> float:
        """Perigee height above the equatorial radius [km]."""
        return self.periapsis - R_EARTH_KM

    @property
    def semiminor(self) -> float:
        """Semiminor axis [km]."""
        return self.semimajor * _py_sqrt(1.0 - self.eccentricity * self.eccentricity)

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def _initialization(self, model: str, build) -> Initialization:
        """Return the cached initialization of *model*, building it if needed."""
        entry = self._cache.get(model)
        if entry is not None and entry.version != self.version:
            logger.debug(
                "Object %s: discarding %s initialization from version %d (now %d)",
                self.catalog_number,
                model,
                entry.version,
                self.version,
            )
            entry = None
        if entry is None:
            entry = build(self)
            self._cache[model] = entry
        return entry

    def propagate(self, model: str, time: datetime | float) -> StateVector:
        """Compute position and velocity with the named model.

        Args:
            model: One of :data:`sgpjax.models.MODEL_NAMES`.
            time: Instant to propagate to, either a UTC ``datetime`` or
                minutes since epoch.

        Returns:
            StateVector: Position [km] and velocity [km/s] in TEME.

        Raises:
            ValueError: Unknown model name.
            BadElements: The elements fail validation.
            WrongRegime: The model does not cover this orbit's regime.
            ModelError: The model broke down numerically.
        """
        if isinstance(time, datetime):
            tsince = minutes_since(self.epoch, time)
        else:
            tsince = float(time)
        r, v, status = run_model(self, model, tsince)
        return StateVector(position=r, velocity=v, tsince=tsince, status=status)

    def __repr__(self) -> str:
        return (
            f"ElementSet(catalog_number={self.catalog_number!r}, epoch={self.epoch.isoformat()}, "
            f"mean_motion={self.mean_motion:.10f} rad/min, eccentricity={self.eccentricity:.7f})"
        )
