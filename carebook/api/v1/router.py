"""API v1 router configuration."""

from fastapi import APIRouter

from carebook.api.v1.endpoints import (
    appointments,
    events,
    health,
    notifications,
    professionals,
    records,
    statistics,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(professionals.router, prefix="/professionals", tags=["Professionals"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(records.router, prefix="/records", tags=["Records"])
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(statistics.router, prefix="/statistics", tags=["Statistics"])
api_router.include_router(notifications.router)
