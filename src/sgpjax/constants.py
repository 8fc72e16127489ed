"""
The `constants` module defines the unit conversions and time constants used by the element record and the propagators.
"""

from math import pi as PI

# Angles
"""
Degrees to radians. Units: *rad/deg*
"""
DEG2RAD = PI / 180.0

"""
Radians to degrees. Units: *deg/rad*
"""
RAD2DEG = 180.0 / PI

# Time Constants

"""
Julian Date minus Modified Julian Date. Units: *days*
"""
JD_MJD_OFFSET = 2400000.5

"""
Julian Date of 1950 January 0.0 UT (1949-12-31 00:00 UT), the origin of the
day count used by the lunar/solar theory. Units: *days*
"""
JD1950 = 2433281.5

"""
Julian Date of the J2000.0 epoch (2000-01-01 12:00:00). Units: *days*
"""
JD2000 = 2451545.0

"""
Minutes in one day. Units: *min/day*
"""
MINUTES_PER_DAY = 1440.0

"""
Seconds in one day. Units: *s/day*
"""
SECONDS_PER_DAY = 86400.0

"""
Revolutions per day to radians per minute, the unit of published mean motion
conversions. Units: *(rad/min)/(rev/day)*
"""
REVPERDAY2RADPERMIN = 2.0 * PI / MINUTES_PER_DAY

# Earth
"""
Earth gravitational parameter used for the derived orbit geometry of an element
set (semimajor axis, apoapsis, periapsis). Units: *km^3/s^2*
"""
GM_EARTH_KM = 398600.5

"""
Earth equatorial radius of the legacy SGP constant block. Units: *km*
"""
R_EARTH_KM = 6378.135
