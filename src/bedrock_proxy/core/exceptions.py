"""
Exceptions personnalisées pour Bedrock Proxy.

Chaque exception porte le code HTTP renvoyé au client et sait se
sérialiser dans l'enveloppe d'erreur `{"error": true, "msg": ...}`.
"""
from typing import Any, Dict


class BedrockProxyError(Exception):
    """Exception de base pour toutes les erreurs du proxy."""

    status_code = 500

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Enveloppe d'erreur renvoyée au client."""
        return {"error": True, "msg": self.message, "code": self.code}


class ConfigurationError(BedrockProxyError):
    """Erreur de configuration (fichier invalide, valeur incohérente)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else {}
        )


class AuthError(BedrockProxyError):
    """Identifiants absents, mal formés ou indéchiffrables."""

    status_code = 401

    def __init__(self, message: str, reason: str = None):
        super().__init__(
            message=message,
            code="auth_error",
            details={"reason": reason} if reason else {}
        )
        self.reason = reason


class PathError(BedrockProxyError):
    """Sous-chemin non autorisé."""

    status_code = 403

    def __init__(self, subpath: str):
        super().__init__(
            message=f"you are not allowed to request {subpath}",
            code="path_error",
            details={"subpath": subpath}
        )


class ValidationError(BedrockProxyError):
    """Le body ne respecte pas le schéma de la famille de modèle."""

    def __init__(self, message: str, field: str = None, model_id: str = None):
        details = {}
        if field:
            details["field"] = field
        if model_id:
            details["model_id"] = model_id
        super().__init__(message=message, code="validation_error", details=details)
        self.field = field


class UpstreamError(BedrockProxyError):
    """Réponse non-2xx de Bedrock ou exception dans le flux d'événements."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int = None):
        super().__init__(
            message=message,
            code="upstream_error",
            details={"upstream_status": upstream_status} if upstream_status else {}
        )
        self.upstream_status = upstream_status


class UpstreamTimeoutError(BedrockProxyError):
    """Deadline dépassée pendant l'appel ou la consommation du stream."""

    status_code = 504

    def __init__(self, message: str, timeout: float = None):
        super().__init__(
            message=message,
            code="timeout_error",
            details={"timeout": timeout} if timeout else {}
        )


class TransportError(BedrockProxyError):
    """Erreur réseau (connexion refusée, reset, DNS...)."""

    status_code = 502

    def __init__(self, message: str, error_type: str = None):
        super().__init__(
            message=message,
            code="transport_error",
            details={"error_type": error_type} if error_type else {}
        )


class ParseFailure(BedrockProxyError):
    """
    Chunk illisible.

    Toujours récupérée localement par le normaliseur (le chunk est
    abandonné), jamais renvoyée au client.
    """

    def __init__(self, message: str, preview: str = None):
        details = {}
        if preview:
            details["preview"] = preview[:100]
        super().__init__(message=message, code="parse_failure", details=details)
