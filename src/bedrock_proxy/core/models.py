"""
Dataclasses métier pour Bedrock Proxy.

Toutes ces entités vivent le temps d'une requête: rien n'est persisté,
rien n'est partagé entre requêtes concurrentes.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ModelFamily(str, Enum):
    """Famille de modèles Bedrock, déduite du préfixe de l'identifiant."""
    TITAN = "titan"
    LLAMA = "llama"
    MISTRAL = "mistral"
    CLAUDE_LEGACY = "claude-legacy"
    CLAUDE_3 = "claude-3"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Credentials:
    """Identifiants AWS résolus pour une requête."""
    region: str
    access_key: str
    secret_key: str

    def __repr__(self) -> str:
        # Jamais de secret en clair dans les logs
        masked = self.access_key[:4] + "..." if len(self.access_key) > 4 else "***"
        return f"Credentials(region={self.region!r}, access_key={masked!r}, secret_key='***')"


@dataclass
class InboundRequest:
    """Requête entrante, telle que reçue par la route /api/bedrock."""
    model_id: str
    raw_body: Any
    streaming_requested: bool = True
    authorization: Optional[str] = None


@dataclass(frozen=True)
class OutboundCall:
    """Appel signé vers Bedrock. Construit une fois, jamais modifié."""
    endpoint_url: str
    signed_headers: Dict[str, str]
    serialized_body: str
    method: str = "POST"
    is_streaming: bool = True


class DeltaKind(str, Enum):
    TEXT = "text"
    TOOL_USE = "tool_use"
    STOP = "stop"


@dataclass(frozen=True)
class DeltaEvent:
    """
    Événement delta normalisé, seule forme observée par les clients.

    - TEXT: fragment de texte généré -> {"delta": {"text": ...}}
    - STOP: raison d'arrêt -> {"delta": {"stop_reason": ...}}
    - TOOL_USE: objet vendeur transmis tel quel (tool calls, marqueurs de bloc)
    """
    kind: DeltaKind
    text: Optional[str] = None
    stop_reason: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def of_text(cls, text: str) -> "DeltaEvent":
        return cls(kind=DeltaKind.TEXT, text=text)

    @classmethod
    def of_stop(cls, stop_reason: str) -> "DeltaEvent":
        return cls(kind=DeltaKind.STOP, stop_reason=stop_reason)

    @classmethod
    def passthrough(cls, payload: Dict[str, Any]) -> "DeltaEvent":
        return cls(kind=DeltaKind.TOOL_USE, payload=payload)

    def to_dict(self) -> Dict[str, Any]:
        """Convertit l'événement dans sa forme wire."""
        if self.kind is DeltaKind.TEXT:
            return {"delta": {"text": self.text}}
        if self.kind is DeltaKind.STOP:
            return {"delta": {"stop_reason": self.stop_reason}}
        return self.payload

    def to_sse(self) -> bytes:
        """Encode l'événement en frame SSE `data: <json>\\n\\n`."""
        return f"data: {json.dumps(self.to_dict())}\n\n".encode("utf-8")
