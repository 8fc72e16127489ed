"""
The SGP propagator family.

Model names accepted by :meth:`sgpjax.ElementSet.propagate`:

- ``simple`` (SGP), ``near-earth-precise`` (SGP4) and
  ``near-earth-highprec`` (SGP8) for near-earth orbits;
- ``deep-space-4`` (SDP4) and ``deep-space-8`` (SDP8) for deep-space orbits;
- ``unified`` (revised SGP4) for either regime;
- ``no-op``, which returns a zero vector;
- the meta-models ``model``, ``model4r``, ``model4`` and ``model8``.
"""

from sgpjax.models._constants import GRAVITY_MODELS, WGS72, WGS72OLD, WGS84, EarthGravity
from sgpjax.models._registry import MODEL_NAMES, resolve_model

__all__ = [
    "MODEL_NAMES",
    "resolve_model",
    "EarthGravity",
    "GRAVITY_MODELS",
    "WGS72OLD",
    "WGS72",
    "WGS84",
]
