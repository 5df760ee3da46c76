from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from route_runner.services.directions import DirectionsRoute

MILES_PER_METER = 0.000621371
FEET_PER_METER = 3.28084
NON_TURN_MANEUVERS = {"depart", "arrive"}


@dataclass(slots=True)
class RouteStats:
    distance_miles: float
    elevation_gain_feet: int
    num_turns: int
    duration_minutes: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RouteStats":
        return cls(
            distance_miles=float(payload["distance_miles"]),
            elevation_gain_feet=int(payload["elevation_gain_feet"]),
            num_turns=int(payload["num_turns"]),
            duration_minutes=int(payload["duration_minutes"]),
        )


def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def elevation_gain_meters(elevation: list[float]) -> float:
    if len(elevation) < 2:
        return 0.0
    return sum(max(0.0, current - previous) for previous, current in zip(elevation, elevation[1:]))


def count_turns(route: DirectionsRoute) -> int:
    turns = 0
    for leg in route.legs:
        for step in leg.get("steps") or []:
            maneuver_type = (step.get("maneuver") or {}).get("type")
            if maneuver_type not in NON_TURN_MANEUVERS:
                turns += 1
    return turns


def calculate_stats(route: DirectionsRoute, elevation: list[float]) -> RouteStats:
    return RouteStats(
        distance_miles=round_half_up(route.distance_m * MILES_PER_METER, 2),
        elevation_gain_feet=int(round_half_up(elevation_gain_meters(elevation) * FEET_PER_METER)),
        num_turns=count_turns(route),
        duration_minutes=int(round_half_up(route.duration_sec / 60)),
    )
