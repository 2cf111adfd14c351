"""
API v1 router.
"""
from fastapi import APIRouter
from app.api.v1.endpoints import entries, health, media, users

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(entries.router, prefix="/entries", tags=["entries"])
api_router.include_router(media.router, prefix="/media", tags=["media"])
api_router.include_router(health.router, tags=["health"])
