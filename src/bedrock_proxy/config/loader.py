"""bedrock_proxy.config.loader

Chargement de la configuration TOML.

Note d'architecture:
- Le fichier `config.toml` est optionnel: les variables d'environnement
  suffisent à configurer le serveur (voir `settings.ServerConfig`).
- Le package `config/` ne dépend que de `core/`.
"""
import os
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.exceptions import ConfigurationError

# Cache global de configuration
_config_cache: Optional[Dict[str, Any]] = None

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(obj: Any) -> Any:
    """
    Récursivement étend les variables d'environnement ${VAR} dans la config.

    Une variable absente est remplacée par une chaîne vide: un placeholder
    non résolu ne doit jamais passer pour un identifiant valide.

    Args:
        obj: Valeur à traiter (str, dict, list)

    Returns:
        Valeur avec variables d'environnement expansées
    """
    if isinstance(obj, str):
        return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


def _clear_config_cache():
    """Vide le cache de configuration."""
    global _config_cache
    _config_cache = None


def _default_config_path() -> str:
    # Structure: project/src/bedrock_proxy/config/loader.py
    current_file = os.path.abspath(__file__)
    project_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(current_file))))
    return os.path.join(project_dir, "config.toml")


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Charge la configuration depuis config.toml.

    Args:
        config_path: Chemin vers le fichier config (optionnel)

    Returns:
        Dictionnaire de configuration (vide si aucun fichier n'existe)

    Raises:
        ConfigurationError: Si un chemin explicite n'existe pas ou si le TOML est invalide
    """
    global _config_cache

    if _config_cache is not None:
        return _config_cache

    explicit = config_path is not None
    path = Path(config_path if explicit else _default_config_path())

    if not path.exists():
        if explicit:
            raise ConfigurationError(
                message=f"Fichier de configuration non trouvé: {config_path}",
                config_key="config_path"
            )
        _config_cache = {}
        return _config_cache

    try:
        with open(path, "rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            message=f"config.toml invalide: {e}",
            config_key="config_path"
        ) from e

    _config_cache = _expand_env_vars(raw_config)
    return _config_cache


def reload_config(config_path: str = None) -> Dict[str, Any]:
    """
    Recharge la configuration depuis le fichier.

    Returns:
        Nouvelle configuration chargée
    """
    _clear_config_cache()
    return load_config(config_path)


def get_config() -> Dict[str, Any]:
    """Retourne la configuration en cache."""
    if _config_cache is None:
        return load_config()
    return _config_cache
