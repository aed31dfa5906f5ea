"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from beautybook.api.v1 import bookings, devices, notifications

api_router = APIRouter()

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Notifications
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

# Devices
api_router.include_router(devices.router, prefix="/devices", tags=["Devices"])
