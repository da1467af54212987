"""
Logique de proxy HTTP vers le runtime Bedrock.
"""

from .families import MODEL_FAMILY_PREFIXES, resolve_model_family, uses_json_headers
from .validation import validate_request
from .credentials import resolve_credentials
from .parsing import parse_event_data
from .eventstream import FrameAssembler, decode_frame
from .deadline import Deadline
from .stream import EXTRACTORS, extract_event, normalize_stream
from .client import create_proxy_client, ProxyClient
from .orchestrator import build_endpoint, build_outbound_call, invoke

__all__ = [
    "MODEL_FAMILY_PREFIXES",
    "resolve_model_family",
    "uses_json_headers",
    "validate_request",
    "resolve_credentials",
    "parse_event_data",
    "FrameAssembler",
    "decode_frame",
    "Deadline",
    "EXTRACTORS",
    "extract_event",
    "normalize_stream",
    "create_proxy_client",
    "ProxyClient",
    "build_endpoint",
    "build_outbound_call",
    "invoke",
]
