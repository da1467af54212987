"""
Configuration des tests pytest.
"""
import base64
import json
import os
import struct
import sys
import zlib

import pytest

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from bedrock_proxy.config.settings import ServerConfig  # noqa: E402

ENCRYPTION_KEY = "test-encryption-key"


def encode_frame(payload: bytes, headers: dict = None) -> bytes:
    """Frame eventstream (headers string uniquement), comme l'émet Bedrock."""
    raw_headers = b""
    for name, value in (headers or {}).items():
        name_bytes = name.encode("utf-8")
        value_bytes = value.encode("utf-8")
        raw_headers += (
            struct.pack(">B", len(name_bytes)) + name_bytes
            + struct.pack(">BH", 7, len(value_bytes)) + value_bytes
        )

    total_length = 16 + len(raw_headers) + len(payload)
    prelude = struct.pack(">II", total_length, len(raw_headers))
    prelude += struct.pack(">I", zlib.crc32(prelude))
    message = prelude + raw_headers + payload
    return message + struct.pack(">I", zlib.crc32(message))


@pytest.fixture
def client_config():
    """Serveur sans identifiants AWS: le client envoie le bearer chiffré."""
    return ServerConfig(encryption_key=ENCRYPTION_KEY)


@pytest.fixture
def server_config():
    """Serveur avec identifiants AWS complets."""
    return ServerConfig(
        aws_region="us-east-1",
        aws_access_key="AKIAEXAMPLEKEY",
        aws_secret_key="server-secret",
        encryption_key=ENCRYPTION_KEY,
    )


@pytest.fixture
def claude3_body():
    return {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": 512,
        "messages": [{"role": "user", "content": "Bonjour"}],
    }


@pytest.fixture
def llama_body():
    return {"prompt": "Bonjour", "max_gen_len": 256}


@pytest.fixture
def mistral_body():
    return {"body": {"prompt": "<s>[INST] Bonjour [/INST]", "max_tokens": 200}}


@pytest.fixture
def titan_body():
    return {"inputText": "Bonjour", "textGenerationConfig": {"maxTokenCount": 100}}


def chunk_frame(event: dict) -> bytes:
    """Frame eventstream `chunk` telle qu'envoyée par invoke-with-response-stream."""
    payload = json.dumps({
        "bytes": base64.b64encode(json.dumps(event).encode("utf-8")).decode("ascii")
    }).encode("utf-8")
    return encode_frame(payload, {
        ":message-type": "event",
        ":event-type": "chunk",
        ":content-type": "application/json",
    })


def exception_frame(exception_type: str, message: str) -> bytes:
    """Frame d'exception envoyée par Bedrock en cours de stream."""
    return encode_frame(json.dumps({"message": message}).encode("utf-8"), {
        ":message-type": "exception",
        ":exception-type": exception_type,
    })


@pytest.fixture
def make_chunk_frame():
    return chunk_frame


@pytest.fixture
def make_exception_frame():
    return exception_frame


def claude_stream_events(text_parts, stop_reason="end_turn"):
    """Séquence d'événements Messages API pour une réponse texte."""
    events = [
        {"type": "message_start", "message": {"id": "msg_1", "role": "assistant"}},
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
    ]
    for part in text_parts:
        events.append({
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "text_delta", "text": part},
        })
    events.append({"type": "content_block_stop", "index": 0})
    events.append({"type": "message_delta", "delta": {"stop_reason": stop_reason}})
    events.append({"type": "message_stop"})
    return events


@pytest.fixture
def make_claude_events():
    return claude_stream_events
