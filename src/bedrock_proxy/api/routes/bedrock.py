"""
Route proxy /api/bedrock/{path}.
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from ...config.settings import get_server_config
from ...core.constants import (
    ALLOWED_PATHS,
    MODEL_ID_HEADER,
    OPTIONS_RESPONSE_BODY,
    SHOULD_STREAM_HEADER,
    SSE_RESPONSE_HEADERS,
)
from ...core.exceptions import BedrockProxyError, PathError, ValidationError
from ...core.models import InboundRequest
from ...proxy.credentials import resolve_credentials
from ...proxy.orchestrator import invoke
from ..auth import check_access

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(error: BedrockProxyError) -> JSONResponse:
    return JSONResponse(content=error.to_dict(), status_code=error.status_code)


async def _read_inbound(request: Request, authorization: Optional[str]) -> InboundRequest:
    """Décode headers + body de la requête entrante."""
    model_id = request.headers.get(MODEL_ID_HEADER)
    if not model_id:
        raise ValidationError("Model ID is required", field="model_id")

    raw = await request.body()
    if not raw.strip():
        raise ValidationError("Request body is empty", field="body", model_id=model_id)
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid JSON body: {e}", field="body", model_id=model_id) from e

    return InboundRequest(
        model_id=model_id,
        raw_body=body,
        streaming_requested=request.headers.get(SHOULD_STREAM_HEADER) != "false",
        authorization=authorization,
    )


async def request_bedrock(request: Request, authorization: Optional[str]):
    """Résout les identifiants, appelle Bedrock et emballe la réponse."""
    config = get_server_config()
    credentials = resolve_credentials(config, authorization)
    inbound = await _read_inbound(request, authorization)

    result = await invoke(inbound, credentials, deadline_seconds=config.deadline_seconds)

    if not inbound.streaming_requested:
        return JSONResponse(content=result)

    return StreamingResponse(
        result,
        headers=SSE_RESPONSE_HEADERS,
        media_type="text/event-stream",
    )


@router.options("/{path:path}")
async def bedrock_options(path: str):
    """Pré-vol CORS."""
    return JSONResponse(content=OPTIONS_RESPONSE_BODY, status_code=200)


@router.post("/{path:path}")
async def bedrock_proxy(path: str, request: Request):
    """
    Proxy vers le runtime Bedrock avec:
    - Liste blanche des sous-chemins
    - Contrôle d'accès (code / clé API)
    - Identifiants serveur ou bearer chiffré
    - Réponse bufferisée (ShouldStream: false) ou SSE normalisé
    """
    if path not in ALLOWED_PATHS:
        return _error_response(PathError(path))

    try:
        auth_result = check_access(request.headers.get("Authorization"), get_server_config())
    except BedrockProxyError as e:
        return _error_response(e)

    try:
        return await request_bedrock(request, auth_result.authorization)
    except BedrockProxyError as e:
        logger.warning(f"⚠️ [BEDROCK] {e}")
        return _error_response(e)
    except Exception as e:
        logger.exception(f"🔴 [BEDROCK] Erreur inattendue: {e}")
        return JSONResponse(content={"error": True, "msg": str(e)}, status_code=500)
