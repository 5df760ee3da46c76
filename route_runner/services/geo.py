from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

EARTH_RADIUS_MILES = 3958.8


@dataclass(slots=True, frozen=True)
class Location:
    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


def _safe_float(value: Any) -> float | None:
    try:
        result = float(value)
    except Exception:
        return None
    if not math.isfinite(result):
        return None
    return result


def is_valid_lat_lng(lat: float, lng: float) -> bool:
    return -90 <= lat <= 90 and -180 <= lng <= 180


def location_from_payload(payload: Any) -> Location | None:
    if not isinstance(payload, dict):
        return None
    lat = _safe_float(payload.get("lat"))
    lng = _safe_float(payload.get("lng", payload.get("lon")))
    if lat is None or lng is None or not is_valid_lat_lng(lat, lng):
        return None
    return Location(lat=lat, lng=lng)


def haversine_miles(a: Location, b: Location) -> float:
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)

    x = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.atan2(math.sqrt(x), math.sqrt(1 - x))
