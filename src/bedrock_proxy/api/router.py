"""
Router principal de l'API.
"""
from fastapi import APIRouter

from .routes import bedrock, health

# Router principal
api_router = APIRouter()

# Inclusion des sous-routers
api_router.include_router(bedrock.router, prefix="/api/bedrock", tags=["bedrock"])
api_router.include_router(health.router, prefix="", tags=["health"])
