"""
Physical constants for the named CR3BP systems.

Masses are in SI units and stored as numpy float64 values. Only the ratio of
the two primary masses enters the nondimensional dynamics, through the mass
parameter mu = m2 / (m1 + m2).

References
----------
Values are based on standard IAU (International Astronomical Union) and
NASA/JPL data. For detailed sources, see:
- IAU 2015 Resolution B3 (https://www.iau.org/static/resolutions/IAU2015_English.pdf)
- NASA JPL Solar System Dynamics (https://ssd.jpl.nasa.gov/)
"""

import numpy as np

# Celestial body masses
#---------------------

#: float: Mass of Sun (kg)
M_sun = np.float64(1.989e30)  # kg

#: float: Mass of Venus (kg)
M_venus = np.float64(4.867e24)  # kg

#: float: Mass of Earth (kg)
M_earth = np.float64(5.972e24)  # kg

#: float: Mass of Moon (kg)
M_moon = np.float64(7.348e22)  # kg

#: float: Mass of Mars (kg)
M_mars = np.float64(6.417e23)  # kg

#: float: Mass of Jupiter (kg)
M_jupiter = np.float64(1.898e27)  # kg

#: float: Mass of Saturn (kg)
M_saturn = np.float64(5.683e26)  # kg

#: float: Mass of Uranus (kg)
M_uranus = np.float64(8.681e25)  # kg

#: float: Mass of Neptune (kg)
M_neptune = np.float64(1.024e26)  # kg

# Primary pairs of the named systems
#-----------------------------------

#: dict: (primary mass, secondary mass) keyed by system name, in the order
#: the batch sweep processes them
SYSTEM_MASSES = {
    "Sun-Venus": (M_sun, M_venus),
    "Sun-Earth": (M_sun, M_earth),
    "Earth-Moon": (M_earth, M_moon),
    "Sun-Mars": (M_sun, M_mars),
    "Sun-Jupiter": (M_sun, M_jupiter),
    "Sun-Saturn": (M_sun, M_saturn),
    "Sun-Uranus": (M_sun, M_uranus),
    "Sun-Neptune": (M_sun, M_neptune),
}
