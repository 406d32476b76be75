from fastapi import APIRouter

from weather_insights.api.routes import auth, health, weather

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(weather.router, tags=["weather"])
api_router.include_router(health.router)
