"""
Parsing best-effort d'un chunk de réponse Bedrock.

Pourquoi plusieurs stratégies:
- Bedrock renvoie selon le modèle et le mode du JSON direct, du JSON dont
  le champ `body` est lui-même une chaîne JSON, du base64 dans une frame
  binaire, ou du texte partiellement corrompu
- Chaque stratégie renvoie un résultat optionnel; la première qui aboutit
  gagne, un chunk qu'aucune ne comprend est abandonné
"""
import base64
import binascii
import json
import logging
import re
from typing import Any, Callable, Optional, Sequence, Union

logger = logging.getLogger(__name__)

BASE64_PATTERN = re.compile(r':"([A-Za-z0-9+/=]+)"')
EVENT_TYPE_PATTERN = re.compile(r":event-type[^{]+({.*})")
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x1F\x7F-\x9F]")

ParseStrategy = Callable[[str], Optional[Any]]


def parse_json(text: str) -> Optional[Any]:
    """JSON direct, avec déballage du champ `body` (chaîne JSON ou objet)."""
    try:
        parsed = json.loads(text)
    except ValueError:
        return None

    if isinstance(parsed, dict):
        body = parsed.get("body")
        if isinstance(body, str):
            try:
                return json.loads(body)
            except ValueError:
                return {"output": body}
        return body or parsed
    return parsed


def parse_base64(text: str) -> Optional[Any]:
    """Sous-chaîne base64 entre guillemets (payload `"bytes":"..."`)."""
    match = BASE64_PATTERN.search(text)
    if not match:
        return None

    encoded = match.group(1)
    encoded += "=" * (-len(encoded) % 4)
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None

    try:
        return json.loads(decoded)
    except ValueError:
        return {"output": decoded}


def parse_event_type(text: str) -> Optional[Any]:
    """Objet `{...}` qui suit un marqueur `:event-type` dans une frame brute."""
    match = EVENT_TYPE_PATTERN.search(text)
    if not match:
        return None
    try:
        return json.loads(match.group(1))
    except ValueError:
        return {"output": match.group(1)}


def parse_plain_text(text: str) -> Optional[Any]:
    """Dernier recours: texte brut nettoyé de ses caractères de contrôle."""
    if not text.strip():
        return None
    return {"output": CONTROL_CHARS_PATTERN.sub("", text)}


PARSE_STRATEGIES: Sequence[ParseStrategy] = (
    parse_json,
    parse_base64,
    parse_event_type,
    parse_plain_text,
)


def parse_event_data(chunk: Union[bytes, str]) -> Optional[Any]:
    """
    Parse un chunk brut en objet exploitable.

    Args:
        chunk: Données d'un événement (bytes ou texte déjà décodé)

    Returns:
        Objet JSON (dict, str...) ou None si le chunk est illisible
    """
    text = chunk.decode("utf-8", errors="replace") if isinstance(chunk, (bytes, bytearray)) else chunk

    for strategy in PARSE_STRATEGIES:
        result = strategy(text)
        if result is not None:
            return result

    logger.debug(f"[PARSE] Chunk abandonné ({len(text)} caractères)")
    return None
