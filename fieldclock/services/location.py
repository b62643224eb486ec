from math import asin, cos, radians, sin, sqrt

from fieldclock.settings import SiteConfig

EARTH_RADIUS_M = 6371000.0


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1_rad = radians(lat1)
    lon1_rad = radians(lon1)
    lat2_rad = radians(lat2)
    lon2_rad = radians(lon2)

    delta_lat = lat2_rad - lat1_rad
    delta_lon = lon2_rad - lon1_rad

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    c = 2 * asin(sqrt(a))
    return EARTH_RADIUS_M * c


def evaluate_geofence(site_config: SiteConfig, lat: float, lon: float) -> tuple[bool, float]:
    """Return (inside, distance in metres) of a point against the site's circle."""
    distance_value = distance_m(site_config.lat, site_config.lon, lat, lon)
    return distance_value <= site_config.radius_m, distance_value
