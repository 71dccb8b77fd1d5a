"""Coordinate conversion and map links for shared locations.

Chinese map providers expect GCJ-02 coordinates while browsers report WGS-84,
so points inside mainland China are shifted before building links.
"""

import math
from datetime import datetime
from urllib.parse import quote

from movecar.core.modules.session.models import Location

_A = 6378245.0
_EE = 0.00669342162296594323
_PIN_NAME = quote("Location")


def out_of_china(lat: float, lng: float) -> bool:
    return lng < 72.004 or lng > 137.8347 or lat < 0.8293 or lat > 55.8271


def _transform_lat(x: float, y: float) -> float:
    ret = -100.0 + 2.0 * x + 3.0 * y + 0.2 * y * y + 0.1 * x * y + 0.2 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * math.pi) + 40.0 * math.sin(y / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * math.pi) + 320 * math.sin(y * math.pi / 30.0)) * 2.0 / 3.0
    return ret


def _transform_lng(x: float, y: float) -> float:
    ret = 300.0 + x + 2.0 * y + 0.1 * x * x + 0.1 * x * y + 0.1 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * math.pi) + 40.0 * math.sin(x / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * math.pi) + 300.0 * math.sin(x / 30.0 * math.pi)) * 2.0 / 3.0
    return ret


def wgs84_to_gcj02(lat: float, lng: float) -> tuple[float, float]:
    """Convert a WGS-84 point to GCJ-02. Points outside China are returned unchanged."""
    if out_of_china(lat, lng):
        return lat, lng

    d_lat = _transform_lat(lng - 105.0, lat - 35.0)
    d_lng = _transform_lng(lng - 105.0, lat - 35.0)
    rad_lat = lat / 180.0 * math.pi
    magic = math.sin(rad_lat)
    magic = 1 - _EE * magic * magic
    sqrt_magic = math.sqrt(magic)
    d_lat = (d_lat * 180.0) / ((_A * (1 - _EE)) / (magic * sqrt_magic) * math.pi)
    d_lng = (d_lng * 180.0) / (_A / sqrt_magic * math.cos(rad_lat) * math.pi)
    return lat + d_lat, lng + d_lng


def generate_map_urls(lat: float, lng: float) -> tuple[str, str]:
    """Return (amap_url, apple_url) for a WGS-84 point."""
    gcj_lat, gcj_lng = wgs84_to_gcj02(lat, lng)
    amap_url = f"https://uri.amap.com/marker?position={gcj_lng},{gcj_lat}&name={_PIN_NAME}"
    apple_url = f"https://maps.apple.com/?ll={gcj_lat},{gcj_lng}&q={_PIN_NAME}"
    return amap_url, apple_url


def build_location(lat: float, lng: float, timestamp: datetime | None = None) -> Location:
    """Location record with map links, as persisted in the session."""
    amap_url, apple_url = generate_map_urls(lat, lng)
    return Location(lat=lat, lng=lng, amap_url=amap_url, apple_url=apple_url, timestamp=timestamp)
