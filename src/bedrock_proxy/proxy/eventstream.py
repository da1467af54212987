"""
Découpage du flux d'octets Bedrock en chunks logiques.

Le transport ne respecte aucune frontière d'événement: une frame peut être
coupée n'importe où, et plusieurs frames peuvent arriver dans un seul
chunk réseau. `FrameAssembler` accumule les octets et ne rend un chunk que
lorsqu'il est complet, de sorte que le découpage réseau ne change jamais
les chunks produits.

Le premier octet du flux fixe le mode:
- Octet nul: frames `application/vnd.amazon.eventstream`, décodées par
  `botocore.eventstream` (CRC du prélude et du message, headers typés).
  Les octets qui ne commencent aucune frame valide forment un fragment
  brut, confié aux heuristiques textuelles.
- Sinon texte non encadré: objets JSON successifs (accolade fermante
  équilibrée), jetons base64 entre guillemets, ou lignes terminées par `\\n`.

Ce qui reste en buffer à la fin du flux est rendu par `flush()`.
"""
import base64
import binascii
import json
import logging
import re
import struct
from typing import Any, Dict, List, Optional

from botocore.eventstream import DecodeUtils, EventStreamBuffer, ParserError

from ..core.exceptions import ParseFailure, UpstreamError
from .parsing import BASE64_PATTERN

logger = logging.getLogger(__name__)

PRELUDE_LENGTH = 12   # total_length (4) + headers_length (4) + prelude_crc (4)
MIN_FRAME_LENGTH = PRELUDE_LENGTH + 4

_WHITESPACE = b" \t\r\n"
_OPENERS = b"{["
_CLOSERS = b"}]"
_QUOTE = 0x22
_BACKSLASH = 0x5C
_BASE64_TOKEN = re.compile(BASE64_PATTERN.pattern.encode("ascii"))


def _frame_length(prelude: bytes) -> Optional[int]:
    """Longueur de la frame annoncée par ce prélude, None s'il est invalide."""
    (total_length, headers_length, _), _ = DecodeUtils.unpack_prelude(prelude)
    if total_length < MIN_FRAME_LENGTH or headers_length > total_length - MIN_FRAME_LENGTH:
        return None

    decoder = EventStreamBuffer()
    decoder.add_data(prelude)
    try:
        # Valide le CRC du prélude; la frame elle-même n'est pas encore là
        next(decoder)
    except StopIteration:
        return total_length
    except ParserError:
        return None
    return total_length


def _exception_message(headers: Dict[str, Any], payload: bytes) -> str:
    exception_type = headers.get(":exception-type") or headers.get(":error-code") or "exception"
    message = headers.get(":error-message") or ""
    try:
        body = json.loads(payload)
        if isinstance(body, dict):
            message = body.get("message") or body.get("Message") or message
    except ValueError:
        message = message or payload.decode("utf-8", errors="replace")
    return f"{exception_type}: {message}" if message else str(exception_type)


def _unwrap_payload(payload: bytes) -> bytes:
    """Déballe le payload `{"bytes": "<base64>"}` d'un événement `chunk`."""
    try:
        body = json.loads(payload)
    except ValueError:
        return payload
    if isinstance(body, dict) and isinstance(body.get("bytes"), str):
        try:
            return base64.b64decode(body["bytes"], validate=True)
        except (binascii.Error, ValueError):
            return payload
    return payload


def decode_frame(frame: bytes) -> bytes:
    """
    Décode une frame eventstream complète et retourne son chunk logique.

    Raises:
        ParseFailure: CRC ou headers invalides (frame à abandonner)
        UpstreamError: Frame d'exception envoyée par Bedrock en cours de stream
    """
    decoder = EventStreamBuffer()
    decoder.add_data(frame)
    try:
        message = next(decoder)
    except StopIteration as e:
        raise ParseFailure("Frame eventstream incomplète") from e
    except (ParserError, KeyError, struct.error, UnicodeDecodeError) as e:
        raise ParseFailure(f"Frame eventstream invalide: {e}") from e

    if message.headers.get(":message-type", "event") in ("exception", "error"):
        raise UpstreamError(_exception_message(message.headers, message.payload))

    return _unwrap_payload(message.payload)


def _find_balanced_end(buffer: bytearray, start: int = 0) -> int:
    """
    Index juste après la fermeture de l'objet/tableau JSON ouvert à `start`.

    Les accolades à l'intérieur des chaînes sont ignorées. Retourne -1 si
    l'objet n'est pas encore complet.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(buffer)):
        byte = buffer[index]
        if in_string:
            if escaped:
                escaped = False
            elif byte == _BACKSLASH:
                escaped = True
            elif byte == _QUOTE:
                in_string = False
            continue
        if byte == _QUOTE:
            in_string = True
        elif byte in _OPENERS:
            depth += 1
        elif byte in _CLOSERS:
            depth -= 1
            if depth == 0:
                return index + 1
    return -1


class FrameAssembler:
    """
    Accumule les octets reçus et rend les chunks logiques complets.

    Une instance par flux; non réutilisable après `flush()`.
    """

    def __init__(self):
        self._buffer = bytearray()
        self._unframed = bytearray()
        self.binary: Optional[bool] = None
        self.frames_decoded = 0
        self.chunks_dropped = 0
        self._pending_error: Optional[UpstreamError] = None

    def feed(self, data: bytes) -> List[bytes]:
        """
        Ajoute des octets et retourne les chunks logiques désormais complets.

        Raises:
            UpstreamError: Frame d'exception reçue. Les chunks qui la
                précèdent sont d'abord rendus, l'erreur est levée à l'appel
                suivant.
        """
        self._raise_pending()
        if self.binary is None and data:
            self.binary = data[0] == 0
        self._buffer.extend(data)

        chunks = []
        while self._buffer:
            try:
                chunk = self._next_frame_chunk() if self.binary else self._next_text_chunk()
            except ParseFailure as e:
                self.chunks_dropped += 1
                logger.debug(f"[EVENTSTREAM] Frame abandonnée: {e.message}")
                continue
            except UpstreamError as e:
                if not chunks:
                    raise
                self._pending_error = e
                break
            if chunk is None:
                break
            chunks.append(chunk)
        return chunks

    def flush(self) -> bytes:
        """Vide le buffer et retourne les octets résiduels (vide si rien d'exploitable)."""
        self._raise_pending()
        residual = bytes(self._buffer)
        self._buffer.clear()

        if self.binary:
            if residual[:1] == b"\x00":
                # Début de frame jamais complétée
                self.chunks_dropped += 1
                logger.debug(f"[EVENTSTREAM] Frame tronquée en fin de flux ({len(residual)} octets)")
                residual = b""
            residual = bytes(self._unframed) + residual
            self._unframed.clear()

        return residual if residual.strip() else b""

    def _raise_pending(self) -> None:
        if self._pending_error is not None:
            error, self._pending_error = self._pending_error, None
            raise error

    def _next_frame_chunk(self) -> Optional[bytes]:
        buffer = self._buffer

        # Resynchronisation: on avance jusqu'au prochain prélude valide
        offset = 0
        total_length = None
        while len(buffer) - offset >= PRELUDE_LENGTH:
            total_length = _frame_length(bytes(buffer[offset:offset + PRELUDE_LENGTH]))
            if total_length is not None:
                break
            offset += 1
        if offset:
            self._unframed.extend(buffer[:offset])
            del buffer[:offset]
        if total_length is None:
            return None

        if self._unframed:
            raw = bytes(self._unframed)
            self._unframed.clear()
            return raw

        if len(buffer) < total_length:
            return None
        frame = bytes(buffer[:total_length])
        del buffer[:total_length]
        self.frames_decoded += 1
        return decode_frame(frame)

    def _next_text_chunk(self) -> Optional[bytes]:
        buffer = self._buffer

        start = 0
        while start < len(buffer) and buffer[start] in _WHITESPACE:
            start += 1
        if start:
            del buffer[:start]
        if not buffer:
            return None

        if buffer[0] in _OPENERS:
            return self._cut(_find_balanced_end(buffer))

        newline = buffer.find(b"\n")
        head_end = newline if newline >= 0 else len(buffer)
        brace = buffer.find(b"{", 0, head_end)

        # Un jeton base64 complet avant tout objet termine le segment
        token = _BASE64_TOKEN.search(buffer, 0, brace if brace >= 0 else head_end)
        if token:
            return self._cut(token.end())

        # Texte suivi d'un objet (marqueur `:event-type`): segment jusqu'à sa fermeture
        if brace >= 0:
            return self._cut(_find_balanced_end(buffer, brace))

        if newline < 0:
            return None
        line = bytes(buffer[:newline]).rstrip(b"\r")
        del buffer[:newline + 1]
        return line

    def _cut(self, end: int) -> Optional[bytes]:
        if end < 0:
            return None
        chunk = bytes(self._buffer[:end])
        del self._buffer[:end]
        return chunk
