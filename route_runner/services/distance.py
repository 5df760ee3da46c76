from __future__ import annotations

import logging
import math
from dataclasses import replace

from route_runner.services.ai.intent import ParsedIntent
from route_runner.services.geo import Location, haversine_miles

logger = logging.getLogger(__name__)

SHORT_ROUTE_RATIO = 0.8
MILES_PER_SYNTHETIC_WAYPOINT = 0.5
ZIGZAG_OFFSET_PER_MILE = 0.004


def estimate_route_distance(points: list[Location]) -> float:
    return sum(haversine_miles(points[index - 1], points[index]) for index in range(1, len(points)))


def generate_additional_waypoints(
    start: Location,
    end: Location,
    target_miles: float,
    current_miles: float,
) -> list[Location]:
    """Zigzag points along the start->end line that add roughly the missing distance.

    Offsets are perpendicular to the straight line, so a loop (start == end)
    collapses every synthetic point onto the start coordinate.
    """
    shortage = target_miles - current_miles
    if shortage <= 0:
        return []

    count = max(2, math.ceil(shortage / MILES_PER_SYNTHETIC_WAYPOINT))
    lat_diff = end.lat - start.lat
    lng_diff = end.lng - start.lng

    waypoints: list[Location] = []
    for index in range(count):
        t = (index + 1) / (count + 1)
        offset = shortage * ZIGZAG_OFFSET_PER_MILE * (1 if index % 2 == 0 else -1)
        waypoints.append(
            Location(
                lat=start.lat + lat_diff * t + lng_diff * offset,
                lng=start.lng + lng_diff * t - lat_diff * offset,
            )
        )
    return waypoints


def augment_intent(intent: ParsedIntent) -> ParsedIntent:
    target = intent.distance_miles
    if not target or target <= 0:
        return intent

    estimated = estimate_route_distance(intent.points())
    threshold = target * SHORT_ROUTE_RATIO
    if estimated >= threshold:
        logger.info(
            "Intent distance within tolerance",
            extra={"target_miles": target, "estimated_miles": round(estimated, 2)},
        )
        return intent

    extra = generate_additional_waypoints(intent.start, intent.end, target, estimated)
    if not extra:
        return intent

    augmented = replace(intent, waypoints=[*intent.waypoints, *extra])
    logger.info(
        "Intent too short, added synthetic waypoints",
        extra={
            "target_miles": target,
            "estimated_miles": round(estimated, 2),
            "added": len(extra),
            "new_estimate_miles": round(estimate_route_distance(augmented.points()), 2),
        },
    )
    return augmented
