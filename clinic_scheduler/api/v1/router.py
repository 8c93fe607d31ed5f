"""API v1 router configuration."""

from fastapi import APIRouter

from clinic_scheduler.api.v1.endpoints import appointments, audit, doctors, health

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(doctors.router, prefix="/doctors", tags=["Doctors"])
api_router.include_router(audit.router, prefix="/audit", tags=["Audit"])
