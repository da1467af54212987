"""
Orchestration d'un appel Bedrock: validation, signature, envoi, réponse.

Cycle de vie d'une requête:
1. Validation du body (aucun appel réseau si invalide)
2. Construction de l'appel sortant signé (immutable)
3. Envoi sous la deadline commune
4. Mode bufferisé: un seul objet JSON parsé
   Mode streaming: séquence SSE paresseuse produite par le normaliseur
5. Libération de la deadline, de la réponse et du client sur tous les chemins
"""
import json
import logging
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Optional, Union
from urllib.parse import quote

import httpx

from ..core.constants import (
    BEDROCK_ENDPOINT_TEMPLATE,
    DEFAULT_DEADLINE_SECONDS,
    JSON_CONTENT_TYPE,
)
from ..core.exceptions import UpstreamError
from ..core.models import Credentials, InboundRequest, ModelFamily, OutboundCall
from ..services.signer import sign_request
from .client import ProxyClient, create_proxy_client
from .deadline import Deadline
from .families import resolve_model_family, uses_json_headers
from .parsing import parse_event_data
from .stream import normalize_stream
from .validation import validate_request

logger = logging.getLogger(__name__)

DEFAULT_UPSTREAM_ERROR_MESSAGE = "Failed to get response from Bedrock"


def build_endpoint(region: str, model_id: str, streaming: bool) -> str:
    """
    URL d'invocation du modèle.

    L'identifiant est encodé (les `:` de `...-v1:0` font partie du chemin
    signé).
    """
    base = BEDROCK_ENDPOINT_TEMPLATE.format(region=region)
    action = "invoke-with-response-stream" if streaming else "invoke"
    return f"{base}/model/{quote(model_id, safe='')}/{action}"


def build_payload(body: Dict[str, Any], family: ModelFamily) -> Dict[str, Any]:
    """Mistral: le sous-objet `body` est déballé et envoyé seul."""
    if family is ModelFamily.MISTRAL and isinstance(body.get("body"), dict):
        return body["body"]
    return body


def build_outbound_call(
    inbound: InboundRequest,
    credentials: Credentials,
    family: ModelFamily
) -> OutboundCall:
    """Construit l'appel sortant signé."""
    url = build_endpoint(credentials.region, inbound.model_id, inbound.streaming_requested)
    serialized_body = json.dumps(build_payload(inbound.raw_body, family))

    additional_headers = {}
    if uses_json_headers(family):
        additional_headers = {"content-type": JSON_CONTENT_TYPE, "accept": JSON_CONTENT_TYPE}

    signed_headers = sign_request(
        method="POST",
        url=url,
        region=credentials.region,
        access_key_id=credentials.access_key,
        secret_access_key=credentials.secret_key,
        body=serialized_body,
        is_streaming=inbound.streaming_requested,
        additional_headers=additional_headers,
    )
    return OutboundCall(
        endpoint_url=url,
        signed_headers=signed_headers,
        serialized_body=serialized_body,
        is_streaming=inbound.streaming_requested,
    )


def _extract_error_message(raw: bytes) -> str:
    """Champ `message` du JSON d'erreur Bedrock, sinon le texte brut."""
    text = raw.decode("utf-8", errors="replace").strip()
    try:
        body = json.loads(text)
    except ValueError:
        return text or DEFAULT_UPSTREAM_ERROR_MESSAGE
    if isinstance(body, dict):
        message = body.get("message") or body.get("Message")
        if isinstance(message, str) and message:
            return message
    return text or DEFAULT_UPSTREAM_ERROR_MESSAGE


async def _sse_body(
    response: httpx.Response,
    client: ProxyClient,
    family: ModelFamily,
    deadline: Deadline
) -> AsyncGenerator[bytes, None]:
    """Séquence SSE; possède la réponse et le client jusqu'à sa fermeture."""
    events = normalize_stream(response.aiter_bytes(), family, deadline=deadline)
    try:
        async for event in events:
            yield event.to_sse()
    except Exception as e:
        logger.error(f"🔴 [STREAM] Stream interrompu: {e}")
        raise
    finally:
        deadline.cancel()
        await events.aclose()
        await response.aclose()
        await client.aclose()


async def invoke(
    inbound: InboundRequest,
    credentials: Credentials,
    *,
    deadline: Optional[Deadline] = None,
    deadline_seconds: float = DEFAULT_DEADLINE_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Union[Any, AsyncIterator[bytes]]:
    """
    Exécute l'appel Bedrock.

    Args:
        inbound: Requête entrante (body déjà décodé)
        credentials: Identifiants résolus pour cette requête
        deadline: Échéance existante (sinon créée avec deadline_seconds)
        deadline_seconds: Budget total de l'appel, stream compris
        transport: Transport httpx alternatif

    Returns:
        Objet JSON parsé (mode bufferisé, None si illisible) ou itérateur
        asynchrone de frames SSE (mode streaming)

    Raises:
        ValidationError: Body invalide (avant tout appel réseau)
        UpstreamError: Réponse non-2xx de Bedrock
        UpstreamTimeoutError: Deadline dépassée
        TransportError: Erreur réseau
    """
    validate_request(inbound.raw_body, inbound.model_id)
    family = resolve_model_family(inbound.model_id)

    if deadline is None:
        deadline = Deadline(deadline_seconds)

    call = build_outbound_call(inbound, credentials, family)
    logger.info(
        f"[BEDROCK] model={inbound.model_id} family={family.value} "
        f"stream={call.is_streaming} region={credentials.region}"
    )

    client = create_proxy_client(timeout=deadline.seconds, transport=transport)
    response: Optional[httpx.Response] = None
    handed_off = False

    try:
        request = client.build_request(
            call.method, call.endpoint_url, call.signed_headers, call.serialized_body
        )
        async with deadline.scope():
            response = await client.send_streaming(request)

        if not response.is_success:
            async with deadline.scope():
                raw = await response.aread()
            message = _extract_error_message(raw)
            logger.error(f"❌ [BEDROCK] Erreur {response.status_code}: {message[:500]}")
            raise UpstreamError(message, upstream_status=response.status_code)

        if not call.is_streaming:
            async with deadline.scope():
                raw = await response.aread()
            return parse_event_data(raw)

        handed_off = True
        return _sse_body(response, client, family, deadline)

    finally:
        if not handed_off:
            deadline.cancel()
            if response is not None:
                await response.aclose()
            await client.aclose()
