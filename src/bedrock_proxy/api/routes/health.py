"""
Routes API pour le health check.
"""
from fastapi import APIRouter

from ...config.settings import get_server_config

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check: état de la configuration, sans aucun secret."""
    config = get_server_config()
    return {
        "status": "ok",
        "server_credentials": config.has_aws_credentials,
        "need_code": config.need_code,
    }
