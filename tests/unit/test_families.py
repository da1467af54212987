"""
Tests unitaires pour la résolution de famille de modèle.
"""
import pytest

from bedrock_proxy.core.models import ModelFamily
from bedrock_proxy.proxy.families import (
    MODEL_FAMILY_PREFIXES,
    resolve_model_family,
    uses_json_headers,
)


@pytest.mark.parametrize("model_id,family", [
    ("anthropic.claude-3-5-sonnet-20240620-v1:0", ModelFamily.CLAUDE_3),
    ("anthropic.claude-3-haiku-20240307-v1:0", ModelFamily.CLAUDE_3),
    ("anthropic.claude-v2:1", ModelFamily.CLAUDE_LEGACY),
    ("anthropic.claude-instant-v1", ModelFamily.CLAUDE_LEGACY),
    ("us.meta.llama3-2-90b-instruct-v1:0", ModelFamily.LLAMA),
    ("mistral.mistral-large-2402-v1:0", ModelFamily.MISTRAL),
    ("amazon.titan-text-express-v1", ModelFamily.TITAN),
    ("cohere.command-r-v1:0", ModelFamily.UNKNOWN),
    ("meta.llama3-8b-instruct-v1:0", ModelFamily.UNKNOWN),
    ("", ModelFamily.UNKNOWN),
])
def test_resolve_model_family(model_id, family):
    assert resolve_model_family(model_id) is family


def test_claude_3_prefix_checked_first():
    prefixes = [prefix for prefix, _ in MODEL_FAMILY_PREFIXES]
    assert prefixes.index("anthropic.claude-3") < prefixes.index("anthropic.claude")


def test_json_headers_only_for_llama_and_mistral():
    assert {f for f in ModelFamily if uses_json_headers(f)} == {ModelFamily.LLAMA, ModelFamily.MISTRAL}
