"""
Sample TLE Data

Element sets used by the demo and the test suite. They cover every branch of
the propagator: near-Earth with full drag terms, deep space without resonance,
12-hour and 24-hour resonance, and the Lyddane low-inclination case.

Sources:
    - ISS: CelesTrak, September 2023
    - Catalog 00005, 06251, 08195, 11801, 28626: Vallado et al. (2006)
      verification set (SGP4-VER.TLE)

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

from typing import Dict, Any

# Default satellite for the demo
SAMPLE_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995',
    'line2': '2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598',
    'epoch': '2023-09-16T13:49:09Z',
}

# Near-Earth, e = 0.186, period ~133 min
VANGUARD_TLE: Dict[str, Any] = {
    'name': 'VANGUARD 1',
    'norad_id': 5,
    'line1': '1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753',
    'line2': '2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667',
}

# Near-Earth, perigee above 220 km: full drag polynomial
NEAR_EARTH_DRAG_TLE: Dict[str, Any] = {
    'name': 'SL-6 R/B',
    'norad_id': 6251,
    'line1': '1 06251U 62025E   06176.82412014  .00008885  00000-0  12808-3 0  3985',
    'line2': '2 06251  58.0579  54.0425 0030035 139.1568 221.1854 14.84476164767361',
}

# Molniya orbit, 12-hour resonance
MOLNIYA_TLE: Dict[str, Any] = {
    'name': 'MOLNIYA 2-14',
    'norad_id': 8195,
    'line1': '1 08195U 75081A   06176.33215444  .00000099  00000-0  11873-3 0   813',
    'line2': '2 08195  64.1586 279.0717 6877146 264.7651  20.2257  2.00491383225656',
}

# Deep space without resonance (period ~11 h)
DEEP_SPACE_TLE: Dict[str, Any] = {
    'name': 'TDRSS F1 R/B',
    'norad_id': 11801,
    'line1': '1 11801U          80230.29629788  .01431103  00000-0  14311-1 0    13',
    'line2': '2 11801  46.7916 230.4354 7318036  47.4722  10.4117  2.28537848    13',
}

# Geostationary, 24-hour resonance, inclination below 0.2 rad
GEOSTATIONARY_TLE: Dict[str, Any] = {
    'name': 'XM-3',
    'norad_id': 28626,
    'line1': '1 28626U 05008A   06176.46683397 -.00000205  00000-0  10000-3 0  2190',
    'line2': '2 28626   0.0019 286.9433 0000335  13.7918  55.6504  1.00270176  4891',
}

# Synthetic element set with an extreme drag term; re-enters within a day
DECAYING_TLE: Dict[str, Any] = {
    'name': 'DECAY TEST',
    'norad_id': 99999,
    'line1': '1 99999U 24001A   24001.00000000  .00100000  00000-0  10000-1 0  9992',
    'line2': '2 99999  54.7356  10.0000 0001000  90.0000  90.0000 16.30000000    18',
}

# Low perigee with heavy drag; eccentricity leaves its range 1560 min after epoch
LOW_PERIGEE_TLE: Dict[str, Any] = {
    'name': 'COSMOS 2405',
    'norad_id': 28350,
    'line1': '1 28350U 04020A   06167.21788666  .16154492  76267-5  18678-3 0  8894',
    'line2': '2 28350  64.9977 345.6130 0024870 260.7578  99.9590 16.47856722116490',
}

SAMPLE_TLES: Dict[str, Dict[str, Any]] = {
    'iss': SAMPLE_ISS_TLE,
    'vanguard': VANGUARD_TLE,
    'sl6': NEAR_EARTH_DRAG_TLE,
    'molniya': MOLNIYA_TLE,
    'tdrss': DEEP_SPACE_TLE,
    'geo': GEOSTATIONARY_TLE,
    'decay': DECAYING_TLE,
    'cosmos': LOW_PERIGEE_TLE,
}

# Demo defaults
DEFAULT_DURATION_HOURS: float = 3.0
DEFAULT_STEP_MINUTES: float = 10.0
