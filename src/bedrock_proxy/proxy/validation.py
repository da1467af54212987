"""
Validation des bodies de requête par famille de modèle.

La validation est synchrone et s'exécute avant tout appel réseau: une
requête invalide ne consomme jamais de quota Bedrock.
"""
import logging
from typing import Any, Callable, Dict

from ..core.constants import ANTHROPIC_BEDROCK_VERSION
from ..core.exceptions import ValidationError
from ..core.models import ModelFamily
from .families import resolve_model_family

logger = logging.getLogger(__name__)

_MISSING = object()


def _is_number(value: Any) -> bool:
    # bool est un int en Python, mais pas un nombre JSON valide ici
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _lookup(body: Dict[str, Any], field: str) -> Any:
    """
    Cherche un champ dans le sous-objet `body` puis au niveau racine.

    Certains clients enveloppent le payload LLaMA/Mistral/Titan sous une clé
    `body`; les deux formes sont acceptées.
    """
    nested = body.get("body")
    if isinstance(nested, dict) and field in nested:
        return nested[field]
    return body.get(field, _MISSING)


def _require_text(body: Dict[str, Any], field: str, message: str, model_id: str) -> None:
    value = _lookup(body, field)
    if not isinstance(value, str) or not value:
        raise ValidationError(message, field=field, model_id=model_id)


def _validate_claude(body: Dict[str, Any], model_id: str, family: ModelFamily) -> None:
    if body.get("anthropic_version") != ANTHROPIC_BEDROCK_VERSION:
        raise ValidationError(
            f"anthropic_version must be '{ANTHROPIC_BEDROCK_VERSION}'",
            field="anthropic_version",
            model_id=model_id
        )

    max_tokens = body.get("max_tokens")
    if not _is_number(max_tokens) or max_tokens < 0:
        raise ValidationError(
            "max_tokens must be a positive number",
            field="max_tokens",
            model_id=model_id
        )

    if family is ModelFamily.CLAUDE_3:
        if not isinstance(body.get("messages"), list):
            raise ValidationError(
                "messages array is required for Claude 3",
                field="messages",
                model_id=model_id
            )
    elif not isinstance(body.get("prompt"), str):
        raise ValidationError(
            "prompt is required for Claude 2 and earlier",
            field="prompt",
            model_id=model_id
        )


def _validate_llama(body: Dict[str, Any], model_id: str, family: ModelFamily) -> None:
    _require_text(body, "prompt", "prompt string is required for LLaMA models", model_id)

    max_gen_len = _lookup(body, "max_gen_len")
    if not _is_number(max_gen_len) or max_gen_len <= 0:
        raise ValidationError(
            "max_gen_len must be a positive number for LLaMA models",
            field="max_gen_len",
            model_id=model_id
        )


def _validate_mistral(body: Dict[str, Any], model_id: str, family: ModelFamily) -> None:
    _require_text(body, "prompt", "prompt is required for Mistral models", model_id)


def _validate_titan(body: Dict[str, Any], model_id: str, family: ModelFamily) -> None:
    _require_text(body, "inputText", "Titan requires inputText", model_id)


def _validate_unknown(body: Dict[str, Any], model_id: str, family: ModelFamily) -> None:
    # Aucun schéma connu: la requête passe sans contrôle
    logger.warning(f"[VALIDATION] Famille inconnue pour '{model_id}', body non vérifié")


VALIDATORS: Dict[ModelFamily, Callable[[Dict[str, Any], str, ModelFamily], None]] = {
    ModelFamily.CLAUDE_3: _validate_claude,
    ModelFamily.CLAUDE_LEGACY: _validate_claude,
    ModelFamily.LLAMA: _validate_llama,
    ModelFamily.MISTRAL: _validate_mistral,
    ModelFamily.TITAN: _validate_titan,
    ModelFamily.UNKNOWN: _validate_unknown,
}


def validate_request(body: Any, model_id: str) -> None:
    """
    Vérifie les champs minimum requis pour la famille du modèle.

    Args:
        body: Body JSON décodé de la requête entrante
        model_id: Identifiant Bedrock du modèle

    Raises:
        ValidationError: Champ manquant ou invalide (nommé dans `field`)
    """
    if not model_id:
        raise ValidationError("Model ID is required", field="model_id")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", field="body", model_id=model_id)

    family = resolve_model_family(model_id)
    VALIDATORS[family](body, model_id, family)
