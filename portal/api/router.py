"""API router aggregation."""

from fastapi import APIRouter

from portal.api.dashboard import router as dashboard_router
from portal.api.health import router as health_router
from portal.api.requests import router as requests_router
from portal.api.users import router as users_router

api_router = APIRouter()
api_router.include_router(health_router)
# Role-aware dashboard view model
api_router.include_router(dashboard_router)
# Client update/meeting requests
api_router.include_router(requests_router)
# Admin user management
api_router.include_router(users_router)
