"""
Résolution de la famille de modèle à partir de l'identifiant Bedrock.
"""
from typing import Tuple

from ..core.models import ModelFamily

# Table ordonnée (préfixe, famille): le premier préfixe qui matche gagne.
# `anthropic.claude-3` doit précéder `anthropic.claude`.
MODEL_FAMILY_PREFIXES: Tuple[Tuple[str, ModelFamily], ...] = (
    ("anthropic.claude-3", ModelFamily.CLAUDE_3),
    ("anthropic.claude", ModelFamily.CLAUDE_LEGACY),
    ("us.meta.llama", ModelFamily.LLAMA),
    ("mistral.mistral", ModelFamily.MISTRAL),
    ("amazon.titan", ModelFamily.TITAN),
)


def resolve_model_family(model_id: str) -> ModelFamily:
    """
    Retourne la famille du modèle, UNKNOWN si aucun préfixe ne correspond.

    Args:
        model_id: Identifiant Bedrock (ex: "anthropic.claude-3-haiku-20240307-v1:0")
    """
    if not model_id:
        return ModelFamily.UNKNOWN
    for prefix, family in MODEL_FAMILY_PREFIXES:
        if model_id.startswith(prefix):
            return family
    return ModelFamily.UNKNOWN


def uses_json_headers(family: ModelFamily) -> bool:
    """LLaMA et Mistral exigent des headers JSON explicites."""
    return family in (ModelFamily.LLAMA, ModelFamily.MISTRAL)
