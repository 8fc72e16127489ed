"""
sgpjax is the NORAD SGP family of analytic orbit propagators (SGP, SGP4, SGP8, SDP4, SDP8 and the revised SGP4) implemented in JAX.
"""

from .constants import (
    DEG2RAD,
    RAD2DEG,
    JD_MJD_OFFSET,
    JD1950,
    MINUTES_PER_DAY,
    REVPERDAY2RADPERMIN,
    GM_EARTH_KM,
    R_EARTH_KM,
)

from .config import (
    set_dtype,
    get_dtype,
    set_default_gravity,
    get_default_gravity,
    set_deep_space_period,
    get_deep_space_period,
)

from .errors import (
    PropagationStatus,
    BadElements,
    WrongRegime,
    ModelError,
)

from .time import datetime_to_jd, minutes_since, gmst

from .elements import ElementSet, StateVector

from .models import MODEL_NAMES, resolve_model


def propagate(elements: ElementSet, model: str, time) -> StateVector:
    """Propagate *elements* with the named *model*; see :meth:`ElementSet.propagate`."""
    return elements.propagate(model, time)
