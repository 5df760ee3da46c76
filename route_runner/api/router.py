from fastapi import APIRouter

from route_runner.api.endpoints import routes

api_router = APIRouter()
api_router.include_router(routes.router)
