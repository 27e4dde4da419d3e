from fastapi import APIRouter

from wolse.api.v1 import health, wolse

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(wolse.router, prefix="/wolse", tags=["wolse"])
