"""
Constantes globales pour Bedrock Proxy.
"""

# ============================================================================
# ROUTES ENTRANTES
# ============================================================================
ALLOWED_PATHS = frozenset({"chat", "models"})

# Headers du contrat client
MODEL_ID_HEADER = "ModelID"
SHOULD_STREAM_HEADER = "ShouldStream"
BEARER_PREFIX = "Bearer "
ACCESS_CODE_PREFIX = "Bearer "

# ============================================================================
# BEDROCK
# ============================================================================
BEDROCK_ENDPOINT_TEMPLATE = "https://bedrock-runtime.{region}.amazonaws.com"
BEDROCK_SERVICE_NAME = "bedrock"
ANTHROPIC_BEDROCK_VERSION = "bedrock-2023-05-31"

EVENTSTREAM_CONTENT_TYPE = "application/vnd.amazon.eventstream"
JSON_CONTENT_TYPE = "application/json"

# ============================================================================
# DEADLINE
# ============================================================================
DEFAULT_DEADLINE_SECONDS = 10 * 60  # 10 minutes pour tout l'appel, stream compris
CONNECT_TIMEOUT_SECONDS = 10.0

# ============================================================================
# RÉPONSE SSE
# ============================================================================
SSE_RESPONSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Désactive le buffering nginx
}

OPTIONS_RESPONSE_BODY = {"body": "OK"}
