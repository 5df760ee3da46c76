"""Location agent: resolves the places a query mentions to coordinates near the user.

Every mention is geocoded concurrently, candidates are filtered to a radius
around the user and merged across mentions by (name, rounded coordinate).
The merged list reaches the reasoning provider only through
``format_locations_for_prompt``.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import math
from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import quote

import httpx

from route_runner.core.enums import LocationPurpose
from route_runner.services.geo import Location, haversine_miles, location_from_payload
from route_runner.services.mentions import Mention, extract_location_mentions

logger = logging.getLogger(__name__)

MILES_RADIUS = 25
MAX_PERIMETER_POINTS = 20
CANDIDATES_PER_MENTION = 5
MAPBOX_TYPES = "poi,landmark,place,neighborhood,locality,region,park,address,street"


@dataclass(slots=True, frozen=True)
class ResolvedLocation:
    name: str
    type: str
    coordinates: Location
    distance_miles: float
    confidence: float
    purpose: LocationPurpose
    mention: str
    perimeter_points: tuple[Location, ...] | None = None
    notes: str | None = None
    source: str = "mapbox"

    @property
    def merge_key(self) -> str:
        return f"{self.name.lower()}_{self.coordinates.lat:.4f}_{self.coordinates.lng:.4f}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "coordinates": self.coordinates.to_dict(),
            "distance_miles": self.distance_miles,
            "perimeter_points": [point.to_dict() for point in self.perimeter_points] if self.perimeter_points else None,
            "source": self.source,
            "confidence": self.confidence,
            "purpose": self.purpose.value,
            "mention": self.mention,
            "notes": self.notes,
        }


@dataclass(slots=True)
class LocationsResult:
    mentions: list[Mention]
    locations: list[ResolvedLocation]


class Geocoder(abc.ABC):
    @abc.abstractmethod
    async def search(self, text: str, proximity: Location, limit: int = CANDIDATES_PER_MENTION) -> list[dict]:
        raise NotImplementedError


class MapboxGeocoder(Geocoder):
    def __init__(self, access_token: str, timeout_sec: int = 8) -> None:
        self.access_token = access_token
        self.timeout_sec = timeout_sec
        self.base_url = "https://api.mapbox.com/geocoding/v5/mapbox.places"

    async def search(self, text: str, proximity: Location, limit: int = CANDIDATES_PER_MENTION) -> list[dict]:
        params = {
            "access_token": self.access_token,
            "proximity": f"{proximity.lng},{proximity.lat}",
            "limit": limit,
            "types": MAPBOX_TYPES,
        }
        async with httpx.AsyncClient(timeout=self.timeout_sec) as client:
            response = await client.get(f"{self.base_url}/{quote(text, safe='')}.json", params=params)
            response.raise_for_status()
            payload = response.json()
        features = payload.get("features") if isinstance(payload, dict) else None
        if not isinstance(features, list):
            return []
        return [item for item in features if isinstance(item, dict)]


def _ring_to_locations(ring: Any) -> list[Location]:
    if not isinstance(ring, list) or not ring:
        return []
    step = max(1, math.ceil(len(ring) / MAX_PERIMETER_POINTS))
    sampled: list[Location] = []
    for pair in ring[::step]:
        if isinstance(pair, (list, tuple)) and len(pair) >= 2:
            sampled.append(Location(lat=float(pair[1]), lng=float(pair[0])))
    return sampled


def _bbox_corners(bbox: list[float]) -> list[Location]:
    west, south, east, north = bbox[:4]
    return [
        Location(lat=north, lng=west),
        Location(lat=north, lng=east),
        Location(lat=south, lng=east),
        Location(lat=south, lng=west),
    ]


def extract_perimeter_points(feature: dict) -> tuple[list[Location] | None, str | None]:
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        geometry = {}
    geometry_type = geometry.get("type")
    coordinates = geometry.get("coordinates")

    if geometry_type == "Polygon" and isinstance(coordinates, list) and coordinates:
        points = _ring_to_locations(coordinates[0])
        if points:
            return points, f"Perimeter from polygon ({len(points)} pts)"

    if geometry_type == "MultiPolygon" and isinstance(coordinates, list) and coordinates:
        first_polygon = coordinates[0]
        if isinstance(first_polygon, list) and first_polygon:
            points = _ring_to_locations(first_polygon[0])
            if points:
                return points, f"Perimeter from multipolygon ({len(points)} pts)"

    bbox = feature.get("bbox")
    if isinstance(bbox, list) and len(bbox) >= 4:
        return _bbox_corners(bbox), "Perimeter from bounding box corners"

    return None, None


def _resolve_type(feature: dict) -> str:
    place_type = feature.get("place_type")
    if isinstance(place_type, list) and place_type:
        return str(place_type[0])
    category = (feature.get("properties") or {}).get("category")
    if category:
        return str(category)
    return "landmark"


def candidates_from_features(features: list[dict], mention: Mention, user_location: Location) -> list[ResolvedLocation]:
    within_radius: list[ResolvedLocation] = []
    fallback: ResolvedLocation | None = None
    fallback_distance = math.inf

    for feature in features:
        center = feature.get("center")
        if not isinstance(center, (list, tuple)) or len(center) < 2:
            continue
        coordinates = location_from_payload({"lat": center[1], "lng": center[0]})
        if coordinates is None:
            continue
        distance = haversine_miles(user_location, coordinates)
        perimeter_points, perimeter_notes = extract_perimeter_points(feature)

        resolved = ResolvedLocation(
            name=feature.get("text") or feature.get("place_name") or mention.phrase,
            type=_resolve_type(feature),
            coordinates=coordinates,
            distance_miles=round(distance, 1),
            confidence=float(feature.get("relevance") or 0),
            purpose=mention.purpose,
            mention=mention.phrase,
            perimeter_points=tuple(perimeter_points) if perimeter_points else None,
            notes=perimeter_notes,
        )

        if distance <= MILES_RADIUS:
            within_radius.append(resolved)
        elif distance < fallback_distance:
            notes = [f"outside {MILES_RADIUS}mi radius"]
            if perimeter_notes:
                notes.append(perimeter_notes)
            fallback = replace(resolved, notes="; ".join(notes))
            fallback_distance = distance

    if within_radius:
        return within_radius
    return [fallback] if fallback is not None else []


def merge_locations(candidate_groups: list[list[ResolvedLocation]]) -> list[ResolvedLocation]:
    merged: dict[str, ResolvedLocation] = {}
    for candidates in candidate_groups:
        for candidate in candidates:
            key = candidate.merge_key
            existing = merged.get(key)
            if existing is None:
                merged[key] = candidate
            elif candidate.purpose.priority > existing.purpose.priority:
                if not candidate.perimeter_points and existing.perimeter_points:
                    candidate = replace(
                        candidate,
                        perimeter_points=existing.perimeter_points,
                        notes=existing.notes or candidate.notes,
                    )
                merged[key] = candidate
            elif not existing.perimeter_points and candidate.perimeter_points:
                merged[key] = replace(
                    existing,
                    perimeter_points=candidate.perimeter_points,
                    notes=candidate.notes or existing.notes,
                )
    return sorted(merged.values(), key=lambda item: item.distance_miles)


class LocationResolver:
    def __init__(self, geocoder: Geocoder | None) -> None:
        self.geocoder = geocoder

    @staticmethod
    async def _geocode_mention(geocoder: Geocoder, mention: Mention, user_location: Location) -> list[ResolvedLocation]:
        try:
            features = await geocoder.search(mention.phrase, user_location, limit=CANDIDATES_PER_MENTION)
            return candidates_from_features(features, mention, user_location)
        except Exception as exc:
            logger.warning("Location geocoding failed", extra={"mention": mention.phrase, "error": str(exc)})
            return []

    async def resolve(self, query: str, user_location: Location) -> LocationsResult:
        if self.geocoder is None:
            logger.warning("Geocoder is not configured; skipping location resolution")
            return LocationsResult(mentions=[], locations=[])
        geocoder = self.geocoder

        mentions = extract_location_mentions(query)
        if not mentions:
            return LocationsResult(mentions=[], locations=[])

        candidate_groups = await asyncio.gather(
            *(self._geocode_mention(geocoder, mention, user_location) for mention in mentions)
        )
        locations = merge_locations(list(candidate_groups))
        logger.info(
            "Resolved query locations",
            extra={
                "mentions": [mention.to_dict() for mention in mentions],
                "locations": [location.name for location in locations],
            },
        )
        return LocationsResult(mentions=mentions, locations=locations)


def format_locations_for_prompt(locations: list[ResolvedLocation]) -> str:
    if not locations:
        return ""

    lines: list[str] = []
    for location in locations:
        base = (
            f"{location.name} | {location.type} | "
            f"{location.coordinates.lat:.4f}, {location.coordinates.lng:.4f}"
        )
        extras = [
            f"purpose={location.purpose.value}",
            f"distance={location.distance_miles:.1f}mi",
            f"confidence={location.confidence:.2f}",
        ]
        if location.perimeter_points:
            extras.append(f"perimeter_points={len(location.perimeter_points)}")
        else:
            extras.append("perimeter=unknown")
        if location.notes:
            extras.append(location.notes)
        lines.append(f"{base} | {', '.join(extras)}")

    return "Nearby locations:\n" + "\n".join(lines)
