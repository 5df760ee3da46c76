from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from route_runner.api.deps import get_route_service
from route_runner.core.responses import success_response
from route_runner.schemas.route import GenerateRouteRequest, GenerateRouteResponse, RouteDataResponse
from route_runner.services.generation import RouteGenerationService
from route_runner.services.geo import Location
from route_runner.services.gpx import generate_gpx

router = APIRouter(tags=["Routes"])


@router.post("/generate-route")
async def generate_route(
    request: Request,
    payload: GenerateRouteRequest,
    service: RouteGenerationService = Depends(get_route_service),
):
    route = await service.generate(
        payload.query,
        Location(lat=payload.location.lat, lng=payload.location.lng),
        session_id=payload.session_id,
    )
    data = GenerateRouteResponse.model_validate(route.to_dict())
    return success_response(data=data.model_dump(by_alias=True), request=request)


@router.get("/route/{session_id}/{route_id}")
async def get_route(
    request: Request,
    session_id: str,
    route_id: str,
    service: RouteGenerationService = Depends(get_route_service),
):
    route = await service.get_route(session_id, route_id)
    data = RouteDataResponse.model_validate(route.to_dict())
    return success_response(data=data.model_dump(by_alias=True), request=request)


@router.get("/route/{session_id}/{route_id}/gpx")
async def download_gpx(
    session_id: str,
    route_id: str,
    service: RouteGenerationService = Depends(get_route_service),
):
    route = await service.get_route(session_id, route_id)
    return Response(
        content=generate_gpx(route),
        media_type="application/gpx+xml",
        headers={"Content-Disposition": f'attachment; filename="route-{route.route_id}.gpx"'},
    )
