"""API V1 Router"""

from fastapi import APIRouter

# Import endpoint routers
from app.api.v1.endpoints import dormitories, meter_readings, bills, settings, cron

# Create API v1 router
api_router = APIRouter()

# Include endpoint routers with prefixes and tags
api_router.include_router(dormitories.router, prefix="/dormitories", tags=["Dormitories"])
api_router.include_router(
    meter_readings.router, prefix="/dormitories/{dormitory_id}/meter-readings", tags=["Meter Readings"]
)
api_router.include_router(bills.router, prefix="/dormitories/{dormitory_id}/bills", tags=["Bills"])
api_router.include_router(settings.router, prefix="/dormitories/{dormitory_id}/settings", tags=["Settings"])
api_router.include_router(cron.router, prefix="/cron", tags=["Scheduled Jobs"])
