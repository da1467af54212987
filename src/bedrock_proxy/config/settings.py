"""
Configuration serveur (lecture seule après le démarrage).
"""
import hashlib
import os
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from ..core.constants import DEFAULT_DEADLINE_SECONDS
from ..core.exceptions import ConfigurationError
from .loader import get_config

# Instance process-wide, initialisée une seule fois dans le lifespan
_server_config: Optional["ServerConfig"] = None


def hash_access_code(code: str) -> str:
    """Hash MD5 d'un code d'accès, tel que comparé par le contrôle d'accès."""
    return hashlib.md5(code.strip().encode("utf-8")).hexdigest()


def _parse_codes(raw: Any) -> FrozenSet[str]:
    if not raw:
        return frozenset()
    if isinstance(raw, str):
        raw = raw.split(",")
    return frozenset(hash_access_code(c) for c in raw if c and c.strip())


@dataclass(frozen=True)
class ServerConfig:
    """Configuration globale du serveur."""
    aws_region: str = ""
    aws_access_key: str = ""
    aws_secret_key: str = ""
    codes: FrozenSet[str] = field(default_factory=frozenset)
    api_key: str = ""
    encryption_key: str = ""
    deadline_seconds: float = DEFAULT_DEADLINE_SECONDS

    @property
    def need_code(self) -> bool:
        return len(self.codes) > 0

    @property
    def has_aws_credentials(self) -> bool:
        """True si les trois valeurs AWS sont fournies côté serveur."""
        return bool(self.aws_region and self.aws_access_key and self.aws_secret_key)

    @classmethod
    def from_sources(
        cls,
        config: Dict[str, Any] = None,
        environ: Mapping[str, str] = None
    ) -> "ServerConfig":
        """
        Construit la configuration depuis config.toml puis l'environnement.

        Les variables d'environnement priment sur le fichier:
        AWS_REGION, AWS_ACCESS_KEY, AWS_SECRET_KEY, CODE, BEDROCK_API_KEY,
        ENCRYPTION_KEY, BEDROCK_DEADLINE_SECONDS.
        """
        config = config or {}
        environ = os.environ if environ is None else environ

        aws = config.get("aws", {})
        auth = config.get("auth", {})
        proxy = config.get("proxy", {})

        def pick(env_name: str, section: Dict[str, Any], key: str) -> str:
            value = environ.get(env_name) or section.get(key) or ""
            return str(value).strip()

        raw_deadline = environ.get("BEDROCK_DEADLINE_SECONDS") or proxy.get(
            "deadline_seconds", DEFAULT_DEADLINE_SECONDS
        )
        try:
            deadline_seconds = float(raw_deadline)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                message=f"deadline_seconds invalide: {raw_deadline!r}",
                config_key="proxy.deadline_seconds"
            ) from e
        if deadline_seconds <= 0:
            raise ConfigurationError(
                message="deadline_seconds doit être positif",
                config_key="proxy.deadline_seconds"
            )

        return cls(
            aws_region=pick("AWS_REGION", aws, "region"),
            aws_access_key=pick("AWS_ACCESS_KEY", aws, "access_key"),
            aws_secret_key=pick("AWS_SECRET_KEY", aws, "secret_key"),
            codes=_parse_codes(environ.get("CODE") or auth.get("codes")),
            api_key=pick("BEDROCK_API_KEY", auth, "api_key"),
            encryption_key=pick("ENCRYPTION_KEY", auth, "encryption_key"),
            deadline_seconds=deadline_seconds,
        )

    @classmethod
    def with_codes(cls, codes: Iterable[str], **kwargs) -> "ServerConfig":
        """Raccourci (tests, scripts): codes d'accès fournis en clair."""
        return cls(codes=_parse_codes(list(codes)), **kwargs)


def init_server_config(config: Dict[str, Any] = None) -> ServerConfig:
    """Initialise la configuration process-wide (appelé au démarrage)."""
    global _server_config
    _server_config = ServerConfig.from_sources(config if config is not None else get_config())
    return _server_config


def get_server_config() -> ServerConfig:
    """Retourne la configuration process-wide, initialisée au premier accès."""
    if _server_config is None:
        return init_server_config()
    return _server_config
