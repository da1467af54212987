"""
Normalisation du stream Bedrock en événements delta.

Pourquoi une extraction par famille:
- Chaque famille de modèles a son propre format de chunk (outputText,
  generation, outputs[0].text, événements Claude typés...)
- Le client ne doit voir qu'une seule forme: `{"delta": {...}}`, ou l'objet
  vendeur tel quel pour les tool calls et marqueurs de bloc

Le générateur ne lit le chunk réseau suivant que lorsque le consommateur
tire l'événement suivant: la contre-pression remonte jusqu'à Bedrock.
"""
import logging
from typing import Any, AsyncGenerator, AsyncIterator, Callable, Dict, Optional, Sequence

import httpx

from ..core.exceptions import TransportError, UpstreamTimeoutError
from ..core.models import DeltaEvent, ModelFamily
from .deadline import Deadline
from .eventstream import FrameAssembler
from .parsing import parse_event_data

logger = logging.getLogger(__name__)

# Types d'erreurs streaming connus
STREAMING_ERROR_TYPES = {
    "read_error": "Connexion interrompue par Bedrock",
    "timeout_error": "Timeout lors de la lecture du stream",
}

Extractor = Callable[[Any], Optional[DeltaEvent]]


def _first_text(parsed: Any, keys: Sequence[str]) -> Optional[str]:
    """Premier texte non vide parmi outputs[0].text puis les clés données."""
    if isinstance(parsed, str):
        return parsed or None
    if not isinstance(parsed, dict):
        return None

    outputs = parsed.get("outputs")
    if isinstance(outputs, list) and outputs and isinstance(outputs[0], dict):
        text = outputs[0].get("text")
        if isinstance(text, str) and text:
            return text

    for key in keys:
        value = parsed.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _as_text_event(text: Optional[str]) -> Optional[DeltaEvent]:
    return DeltaEvent.of_text(text) if text else None


def _extract_titan(parsed: Any) -> Optional[DeltaEvent]:
    if not isinstance(parsed, dict):
        return None
    text = parsed.get("outputText")
    return _as_text_event(text if isinstance(text, str) else None)


def _extract_llama(parsed: Any) -> Optional[DeltaEvent]:
    return _as_text_event(_first_text(parsed, ("generation", "output")))


def _extract_mistral(parsed: Any) -> Optional[DeltaEvent]:
    return _as_text_event(_first_text(parsed, ("output", "completion")))


def _extract_claude(parsed: Any) -> Optional[DeltaEvent]:
    """
    Événements Messages API de Claude.

    - content_block_delta/text_delta -> texte
    - content_block_delta/input_json_delta -> objet transmis tel quel
    - message_delta avec stop_reason -> stop
    - content_block_start d'un bloc tool_use, content_block_stop -> tels quels
    """
    if not isinstance(parsed, dict):
        return None

    event_type = parsed.get("type")
    delta = parsed.get("delta") if isinstance(parsed.get("delta"), dict) else {}

    if event_type == "content_block_delta":
        if delta.get("type") == "text_delta":
            text = delta.get("text")
            return DeltaEvent.of_text(text) if isinstance(text, str) else None
        if delta.get("type") == "input_json_delta":
            return DeltaEvent.passthrough(parsed)
        return None

    if event_type == "message_delta" and delta.get("stop_reason"):
        return DeltaEvent.of_stop(delta["stop_reason"])

    if event_type == "content_block_start":
        block = parsed.get("content_block")
        if isinstance(block, dict) and block.get("type") == "tool_use":
            return DeltaEvent.passthrough(parsed)
        return None

    if event_type == "content_block_stop":
        return DeltaEvent.passthrough(parsed)

    return None


def _extract_unknown(parsed: Any) -> Optional[DeltaEvent]:
    return None


EXTRACTORS: Dict[ModelFamily, Extractor] = {
    ModelFamily.TITAN: _extract_titan,
    ModelFamily.LLAMA: _extract_llama,
    ModelFamily.MISTRAL: _extract_mistral,
    ModelFamily.CLAUDE_LEGACY: _extract_claude,
    ModelFamily.CLAUDE_3: _extract_claude,
    ModelFamily.UNKNOWN: _extract_unknown,
}


def extract_event(parsed: Any, family: ModelFamily) -> Optional[DeltaEvent]:
    """Extrait l'événement delta d'un chunk parsé, None si rien à transmettre."""
    return EXTRACTORS[family](parsed)


def _chunk_event(chunk: bytes, family: ModelFamily) -> Optional[DeltaEvent]:
    parsed = parse_event_data(chunk)
    if not parsed:
        return None
    return extract_event(parsed, family)


async def _iter_stream_with_error_handling(
    byte_stream: AsyncIterator[bytes]
) -> AsyncGenerator[bytes, None]:
    """Itère sur les octets en traduisant les erreurs httpx."""
    try:
        async for chunk in byte_stream:
            yield chunk
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError(
            f"{STREAMING_ERROR_TYPES['timeout_error']}: {e}"
        ) from e
    except httpx.TransportError as e:
        raise TransportError(
            f"{STREAMING_ERROR_TYPES['read_error']}: {e}",
            error_type=type(e).__name__
        ) from e


async def normalize_stream(
    byte_stream: AsyncIterator[bytes],
    family: ModelFamily,
    *,
    deadline: Optional[Deadline] = None
) -> AsyncGenerator[DeltaEvent, None]:
    """
    Transforme le flux d'octets Bedrock en séquence d'événements delta.

    Args:
        byte_stream: Octets bruts (découpage arbitraire)
        family: Famille du modèle appelé
        deadline: Échéance commune à l'appel; son annulation arrête la séquence

    Yields:
        DeltaEvent dans l'ordre d'arrivée

    Raises:
        UpstreamError: Frame d'exception Bedrock en cours de stream
        UpstreamTimeoutError: Échéance atteinte pendant la lecture
        TransportError: Connexion interrompue
    """
    assembler = FrameAssembler()
    source = _iter_stream_with_error_handling(byte_stream)
    events_sent = 0

    try:
        while True:
            if deadline is not None and deadline.cancelled:
                logger.debug("[STREAM] Séquence annulée")
                return

            try:
                if deadline is not None:
                    async with deadline.scope():
                        data = await anext(source)
                else:
                    data = await anext(source)
            except StopAsyncIteration:
                break

            for chunk in assembler.feed(data):
                event = _chunk_event(chunk, family)
                if event is not None:
                    events_sent += 1
                    yield event

        residual = assembler.flush()
        if residual:
            event = _chunk_event(residual, family)
            if event is None and not assembler.binary:
                # Texte que ni le parsing ni l'extraction n'exploitent: rendu brut
                event = DeltaEvent.of_text(residual.decode("utf-8", errors="replace"))
            if event is not None:
                events_sent += 1
                yield event
    finally:
        await source.aclose()
        logger.debug(
            f"[STREAM] {family.value}: {events_sent} événements, "
            f"{assembler.frames_decoded} frames, {assembler.chunks_dropped} abandonnés"
        )
