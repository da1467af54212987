"""
Contrôle d'accès des routes /api/bedrock.

Le header Authorization porte soit une clé API utilisateur (pas de préfixe
`Bearer `), soit un code d'accès préfixé. Les codes configurés sont stockés
hashés (MD5); le code reçu n'est jamais loggé.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config.settings import ServerConfig, hash_access_code
from ..core.constants import ACCESS_CODE_PREFIX, BEARER_PREFIX
from ..core.exceptions import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Résultat du contrôle: header Authorization effectif pour la suite."""
    authorization: Optional[str]
    uses_system_key: bool = False


def _parse_api_key(bearer_token: str) -> Tuple[str, str]:
    """Retourne (access_code, api_key); l'un des deux est toujours vide."""
    token = bearer_token.strip()
    if not token.startswith(BEARER_PREFIX):
        return "", token
    return token[len(ACCESS_CODE_PREFIX):], ""


def check_access(authorization: Optional[str], config: ServerConfig) -> AuthResult:
    """
    Vérifie le code d'accès et injecte la clé API système si besoin.

    Args:
        authorization: Valeur brute du header Authorization
        config: Configuration serveur

    Returns:
        AuthResult avec le header Authorization à utiliser

    Raises:
        AuthError: "wrong access code" ou "empty access code"
    """
    access_code, user_key = _parse_api_key(authorization or "")

    if config.need_code and not user_key:
        if hash_access_code(access_code) not in config.codes:
            logger.warning("[AUTH] Code d'accès refusé")
            raise AuthError(
                "wrong access code" if access_code else "empty access code",
                reason="access code"
            )

    if user_key:
        logger.debug("[AUTH] Clé API utilisateur")
        return AuthResult(authorization=authorization)

    if config.api_key:
        logger.debug("[AUTH] Clé API système injectée")
        return AuthResult(authorization=f"{BEARER_PREFIX}{config.api_key}", uses_system_key=True)

    logger.debug("[AUTH] Aucune clé API système configurée")
    return AuthResult(authorization=authorization)
