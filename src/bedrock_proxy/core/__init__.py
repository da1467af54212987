"""
Cœur métier de Bedrock Proxy.
Modules indépendants sans dépendances externes au package.
"""

from .exceptions import (
    BedrockProxyError,
    ConfigurationError,
    AuthError,
    PathError,
    ValidationError,
    UpstreamError,
    UpstreamTimeoutError,
    TransportError,
    ParseFailure,
)
from .constants import (
    ALLOWED_PATHS,
    ANTHROPIC_BEDROCK_VERSION,
    BEDROCK_ENDPOINT_TEMPLATE,
    DEFAULT_DEADLINE_SECONDS,
    SSE_RESPONSE_HEADERS,
)
from .models import (
    ModelFamily,
    Credentials,
    InboundRequest,
    OutboundCall,
    DeltaKind,
    DeltaEvent,
)

__all__ = [
    # Exceptions
    "BedrockProxyError",
    "ConfigurationError",
    "AuthError",
    "PathError",
    "ValidationError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "TransportError",
    "ParseFailure",
    # Constants
    "ALLOWED_PATHS",
    "ANTHROPIC_BEDROCK_VERSION",
    "BEDROCK_ENDPOINT_TEMPLATE",
    "DEFAULT_DEADLINE_SECONDS",
    "SSE_RESPONSE_HEADERS",
    # Models
    "ModelFamily",
    "Credentials",
    "InboundRequest",
    "OutboundCall",
    "DeltaKind",
    "DeltaEvent",
]
