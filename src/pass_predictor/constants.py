"""
Physical and model constants for SGP4/SDP4 propagation.

Values follow the WGS-72 based set used by Spacetrack Report #3, which the
reference test vectors were generated with. Do not swap in WGS-84 values
here; the propagator coefficients are tuned to these.
"""

import math

# =============================================================================
# MATHEMATICAL CONSTANTS
# =============================================================================
PI = math.pi
PIO2 = PI / 2.0
X3PIO2 = 3.0 * PI / 2.0
TWOPI = 2.0 * PI
DE2RA = PI / 180.0
E6A = 1.0e-6
TOTHRD = 2.0 / 3.0

# =============================================================================
# EARTH / GRAVITY MODEL (WGS-72)
# =============================================================================
XJ2 = 1.0826158e-3  # J2 harmonic
XJ3 = -2.53881e-6  # J3 harmonic
XJ4 = -1.65597e-6  # J4 harmonic
XKE = 7.43669161e-2  # sqrt(GM) in earth radii^1.5 / min
XKMPER = 6.378135e3  # Earth equatorial radius, km
AE = 1.0  # Distance units per earth radius
CK2 = 5.413079e-4  # J2 / 2
CK4 = 6.209887e-7  # -3 J4 / 8
FLATTENING = 3.352779e-3
S_PARAM = 1.012229  # Atmospheric density parameter s (earth radii)
QOMS2T = 1.880279e-09  # (q0 - s)^4 (earth radii^4)
OMEGA_E = 1.0027379  # Earth rotations per sidereal day
EARTH_ROTATION_RATE = 7.292115e-5  # rad/s

# =============================================================================
# TIME
# =============================================================================
XMNPDA = 1.44e3  # Minutes per day
SECDAY = 8.64e4  # Seconds per day
JD_J2000 = 2451545.0
JD_1950_JAN_0 = 2433281.5
JD_1900_JAN_0_5 = 2415020.0

# =============================================================================
# DEEP-SPACE (LUNAR / SOLAR / RESONANCE) TERMS
# =============================================================================
ZNS = 1.19459e-5
C1SS = 2.9864797e-6
ZES = 1.675e-2
ZNL = 1.5835218e-4
C1L = 4.7968065e-7
ZEL = 5.490e-2
ZCOSIS = 9.1744867e-1
ZSINIS = 3.9785416e-1
ZSINGS = -9.8088458e-1
ZCOSGS = 1.945905e-1
Q22 = 1.7891679e-6
Q31 = 2.1460748e-6
Q33 = 2.2123015e-7
G22 = 5.7686396
G32 = 9.5240898e-1
G44 = 1.8014998
G52 = 1.0508330
G54 = 4.4108898
ROOT22 = 1.7891679e-6
ROOT32 = 3.7393792e-7
ROOT44 = 7.3636953e-9
ROOT52 = 1.1428639e-7
ROOT54 = 2.1765803e-9
THDT = 4.3752691e-3  # Earth rotation rate, rad/min

# =============================================================================
# SUN
# =============================================================================
SOLAR_RADIUS_KM = 6.96e5  # IAU 76
AU_KM = 1.49597870e8  # IAU 76

# =============================================================================
# PASS SEARCH
# =============================================================================
DEEP_SPACE_PERIOD_MINUTES = 225.0
GEOSTATIONARY_MEAN_MOTION = 1.0027  # rev/day
GEOSTATIONARY_TOLERANCE = 0.0002  # rev/day
