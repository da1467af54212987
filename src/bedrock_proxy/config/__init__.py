"""
Configuration de Bedrock Proxy.
"""

from .loader import load_config, reload_config, get_config
from .settings import (
    ServerConfig,
    hash_access_code,
    init_server_config,
    get_server_config,
)

__all__ = [
    "load_config",
    "reload_config",
    "get_config",
    "ServerConfig",
    "hash_access_code",
    "init_server_config",
    "get_server_config",
]
