"""
Résolution des identifiants AWS d'une requête.

Deux sources, dans cet ordre:
1. La configuration serveur, si elle porte région + access key + secret key
2. Le bearer token `Bearer <region>:<access_key>:<secret_key>`, chaque
   champ chiffré individuellement (voir `services.crypto`)
"""
import logging
from typing import Optional

from ..config.settings import ServerConfig
from ..core.constants import BEARER_PREFIX
from ..core.exceptions import AuthError
from ..core.models import Credentials
from ..services.crypto import decrypt

logger = logging.getLogger(__name__)


def resolve_credentials(
    server_config: ServerConfig,
    authorization_header: Optional[str]
) -> Credentials:
    """
    Résout les identifiants pour la durée d'une requête.

    Args:
        server_config: Configuration serveur (lecture seule)
        authorization_header: Valeur brute du header Authorization

    Returns:
        Credentials complets

    Raises:
        AuthError: reason "missing header", "bad format" ou "decrypt failure"
    """
    if server_config.has_aws_credentials:
        return Credentials(
            region=server_config.aws_region,
            access_key=server_config.aws_access_key,
            secret_key=server_config.aws_secret_key,
        )

    if not authorization_header or not authorization_header.startswith(BEARER_PREFIX):
        raise AuthError("Missing or invalid Authorization header", reason="missing header")

    tokens = authorization_header[len(BEARER_PREFIX):].strip().split(":")
    if len(tokens) != 3 or not all(tokens):
        raise AuthError("Invalid Authorization header format", reason="bad format")

    region, access_key, secret_key = (
        decrypt(token, server_config.encryption_key) for token in tokens
    )
    if not region or not access_key or not secret_key:
        raise AuthError("Failed to decrypt AWS credentials", reason="decrypt failure")

    credentials = Credentials(region=region, access_key=access_key, secret_key=secret_key)
    logger.debug(f"[AUTH] Identifiants client résolus: {credentials!r}")
    return credentials
