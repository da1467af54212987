"""
Tests unitaires pour la validation des bodies par famille.

Pourquoi: une requête invalide ne doit jamais partir vers Bedrock, et
l'erreur doit nommer le champ fautif.
"""
import pytest

from bedrock_proxy.core.exceptions import ValidationError
from bedrock_proxy.proxy.validation import VALIDATORS, validate_request
from bedrock_proxy.core.models import ModelFamily

CLAUDE_3 = "anthropic.claude-3-haiku-20240307-v1:0"
CLAUDE_2 = "anthropic.claude-v2"
LLAMA = "us.meta.llama3-2-11b-instruct-v1:0"
MISTRAL = "mistral.mistral-7b-instruct-v0:2"
TITAN = "amazon.titan-text-lite-v1"


def assert_rejected(body, model_id, field):
    with pytest.raises(ValidationError) as exc_info:
        validate_request(body, model_id)
    assert exc_info.value.field == field
    return exc_info.value


def test_every_family_has_a_validator():
    assert set(VALIDATORS) == set(ModelFamily)


class TestClaude:
    def test_claude_3_accepted(self, claude3_body):
        validate_request(claude3_body, CLAUDE_3)

    def test_claude_2_accepted(self):
        validate_request(
            {"anthropic_version": "bedrock-2023-05-31", "max_tokens": 0, "prompt": "\n\nHuman: hi"},
            CLAUDE_2,
        )

    def test_wrong_version(self, claude3_body):
        claude3_body["anthropic_version"] = "2023-06-01"
        error = assert_rejected(claude3_body, CLAUDE_3, "anthropic_version")
        assert error.message == "anthropic_version must be 'bedrock-2023-05-31'"

    @pytest.mark.parametrize("max_tokens", [None, "100", -1, True])
    def test_invalid_max_tokens(self, claude3_body, max_tokens):
        claude3_body["max_tokens"] = max_tokens
        assert_rejected(claude3_body, CLAUDE_3, "max_tokens")

    def test_float_max_tokens_accepted(self, claude3_body):
        claude3_body["max_tokens"] = 100.0
        validate_request(claude3_body, CLAUDE_3)

    def test_claude_3_requires_messages(self, claude3_body):
        claude3_body["messages"] = "pas une liste"
        error = assert_rejected(claude3_body, CLAUDE_3, "messages")
        assert error.message == "messages array is required for Claude 3"

    def test_claude_2_requires_prompt(self):
        body = {"anthropic_version": "bedrock-2023-05-31", "max_tokens": 10, "messages": []}
        error = assert_rejected(body, CLAUDE_2, "prompt")
        assert error.message == "prompt is required for Claude 2 and earlier"


class TestLlama:
    def test_accepted(self, llama_body):
        validate_request(llama_body, LLAMA)

    def test_nested_body_accepted(self, llama_body):
        validate_request({"body": llama_body}, LLAMA)

    @pytest.mark.parametrize("prompt", [None, "", 42])
    def test_invalid_prompt(self, llama_body, prompt):
        llama_body["prompt"] = prompt
        error = assert_rejected(llama_body, LLAMA, "prompt")
        assert error.message == "prompt string is required for LLaMA models"

    @pytest.mark.parametrize("max_gen_len", [0, "512", None, False])
    def test_invalid_max_gen_len(self, llama_body, max_gen_len):
        llama_body["max_gen_len"] = max_gen_len
        assert_rejected(llama_body, LLAMA, "max_gen_len")


class TestMistralAndTitan:
    def test_mistral_nested(self, mistral_body):
        validate_request(mistral_body, MISTRAL)

    def test_mistral_top_level(self):
        validate_request({"prompt": "<s>[INST] hi [/INST]"}, MISTRAL)

    def test_mistral_missing_prompt(self):
        error = assert_rejected({"body": {"max_tokens": 10}}, MISTRAL, "prompt")
        assert error.message == "prompt is required for Mistral models"

    def test_titan(self, titan_body):
        validate_request(titan_body, TITAN)
        validate_request({"body": titan_body}, TITAN)

    def test_titan_missing_input(self):
        error = assert_rejected({"prompt": "x"}, TITAN, "inputText")
        assert error.message == "Titan requires inputText"


class TestGeneral:
    def test_missing_model_id(self, titan_body):
        assert_rejected(titan_body, "", "model_id")

    @pytest.mark.parametrize("body", [None, [], "texte"])
    def test_non_object_body(self, body):
        assert_rejected(body, TITAN, "body")

    def test_unknown_family_not_checked(self):
        """Famille inconnue: aucun contrôle, la requête passe."""
        validate_request({}, "cohere.command-r-v1:0")

    def test_validation_error_status(self, titan_body):
        error = assert_rejected({}, TITAN, "inputText")
        assert error.status_code == 500
        assert error.to_dict()["error"] is True
