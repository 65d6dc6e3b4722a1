"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from artspace.api.routes import artists, artworks, shows

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(artworks.router)
api_router.include_router(artists.router)
api_router.include_router(shows.router)
