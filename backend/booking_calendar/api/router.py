from fastapi import APIRouter

from booking_calendar.api.v1 import auth, availability, bookings, health, statistics, users, websocket


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(availability.router, prefix="/availability", tags=["availability"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(statistics.router, prefix="/statistics", tags=["statistics"])
api_router.include_router(websocket.router, prefix="/ws", tags=["websocket"])
