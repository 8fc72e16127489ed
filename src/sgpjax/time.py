"""Time conversions for element-set epochs.

Epochs are UTC ``datetime`` objects.  The propagators need them as split
Julian dates (whole day plus fraction, to keep precision), as days since
1950 January 0.0, and as Greenwich sidereal angles.  All functions here run
in plain Python floats because they are evaluated once per initialization.
"""

from __future__ import annotations

from datetime import datetime, timezone
from math import floor as _py_floor
from math import fmod as _py_fmod
from math import pi as _py_pi

from .constants import JD1950, JD2000, JD_MJD_OFFSET, SECONDS_PER_DAY

_twopi = 2.0 * _py_pi


def caldate_to_jd(year: int, month: int, day: int) -> float:
    """Convert a calendar date at 0h to Julian Date. Valid from year 1583 onward.

    Args:
        year (int): Year of the calendar date.
        month (int): Month of the calendar date.
        day (int): Day of the calendar date.

    Returns:
        Julian Date of 0h on the given day (always ends in ``.5``).

    References:

        1. Montenbruck, O., & Gill, E. (2012). *Satellite Orbits: Models, Methods and Applications*. Springer Science & Business Media.
    """
    if month <= 2:
        year -= 1
        month += 12

    b = _py_floor(year / 400) - _py_floor(year / 100) + _py_floor(year / 4)
    mjd = 365 * year - 679004 + b + _py_floor(30.6001 * (month + 1)) + day

    return float(mjd) + JD_MJD_OFFSET


def _as_utc(dt: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already.
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def datetime_to_jd(dt: datetime) -> tuple[float, float]:
    """Split a UTC datetime into whole and fractional Julian Date.

    Args:
        dt: Epoch. Naive datetimes are interpreted as UTC.

    Returns:
        tuple[float, float]: ``(jd, fraction)`` where ``jd`` is the Julian
        Date of the preceding 0h and ``fraction`` the elapsed part of the day.
    """
    dt = _as_utc(dt)
    jd = caldate_to_jd(dt.year, dt.month, dt.day)
    seconds = dt.hour * 3600.0 + dt.minute * 60.0 + dt.second + dt.microsecond * 1e-6
    return jd, seconds / SECONDS_PER_DAY


def days_since_1950(dt: datetime) -> float:
    """Return days elapsed since 1950 January 0.0 UT (1949-12-31 00:00)."""
    jd, fraction = datetime_to_jd(dt)
    return (jd - JD1950) + fraction


def minutes_since(epoch: datetime, dt: datetime) -> float:
    """Return the minutes elapsed from *epoch* to *dt* (negative if earlier)."""
    return (_as_utc(dt) - _as_utc(epoch)).total_seconds() / 60.0


def gmst(jd: float, fraction: float = 0.0) -> float:
    """Greenwich mean sidereal angle from the IAU-82 polynomial.

    Args:
        jd: Julian Date (UT1), whole part or full value.
        fraction: Optional fractional day added to *jd*.

    Returns:
        Sidereal angle in radians, in ``[0, 2pi)``.

    References:

        1. Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
           *Revisiting Spacetrack Report #3*. AIAA 2006-6753.
    """
    tut1 = (jd + fraction - JD2000) / 36525.0
    temp = (
        -6.2e-6 * tut1 * tut1 * tut1
        + 0.093104 * tut1 * tut1
        + (876600.0 * 3600 + 8640184.812866) * tut1
        + 67310.54841
    )
    temp = _py_fmod(temp * (_py_pi / 180.0) / 240.0, _twopi)
    if temp < 0.0:
        temp += _twopi
    return temp


def thetag(ds50: float) -> float:
    """Greenwich sidereal angle from the linear 1950-based expression.

    This is the form used by the original deep-space models.

    Args:
        ds50: Days since 1950 January 0.0 UT.

    Returns:
        Sidereal angle in radians, in ``[0, 2pi)``.
    """
    theta = _py_fmod(1.72944494 + 6.3003880987 * ds50, _twopi)
    if theta < 0.0:
        theta += _twopi
    return theta
