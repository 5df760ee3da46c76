from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LocationIn(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class GenerateRouteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1, max_length=1000)
    location: LocationIn
    session_id: str | None = Field(default=None, alias="sessionId", max_length=128)


class RouteStatsOut(BaseModel):
    distance_miles: float
    elevation_gain_feet: int
    num_turns: int
    duration_minutes: int


class RouteGeometryOut(BaseModel):
    type: str = "LineString"
    coordinates: list[list[float]]


class GenerateRouteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    route_id: str = Field(alias="routeId")
    name: str
    geometry: RouteGeometryOut
    stats: RouteStatsOut


class RouteDataResponse(GenerateRouteResponse):
    original_query: str = Field(alias="originalQuery")
    elevation: list[float] | None = None
    created_at: str = Field(alias="createdAt")