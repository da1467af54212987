"""
Tests unitaires pour l'orchestration d'un appel Bedrock.
"""
import json
from unittest.mock import patch

import httpx
import pytest

from bedrock_proxy.core.exceptions import UpstreamError, ValidationError
from bedrock_proxy.core.models import Credentials, InboundRequest, ModelFamily
from bedrock_proxy.proxy.orchestrator import (
    DEFAULT_UPSTREAM_ERROR_MESSAGE,
    _extract_error_message,
    build_endpoint,
    build_outbound_call,
    build_payload,
    invoke,
)

from conftest import chunk_frame

CREDENTIALS = Credentials(region="eu-west-3", access_key="AKIATESTKEY", secret_key="secret")


class TestBuildEndpoint:
    def test_streaming(self):
        url = build_endpoint("us-east-1", "amazon.titan-text-express-v1", True)
        assert url == (
            "https://bedrock-runtime.us-east-1.amazonaws.com"
            "/model/amazon.titan-text-express-v1/invoke-with-response-stream"
        )

    def test_buffered_with_quoted_model_id(self):
        url = build_endpoint("us-west-2", "anthropic.claude-3-haiku-20240307-v1:0", False)
        assert url.endswith("/model/anthropic.claude-3-haiku-20240307-v1%3A0/invoke")


class TestBuildPayload:
    def test_mistral_body_unwrapped(self, mistral_body):
        assert build_payload(mistral_body, ModelFamily.MISTRAL) == mistral_body["body"]

    def test_llama_nested_body_kept(self):
        body = {"body": {"prompt": "x", "max_gen_len": 10}}
        assert build_payload(body, ModelFamily.LLAMA) is body


class TestBuildOutboundCall:
    def test_signed_call(self, claude3_body):
        inbound = InboundRequest(model_id="anthropic.claude-3-sonnet-20240229-v1:0", raw_body=claude3_body)
        call = build_outbound_call(inbound, CREDENTIALS, ModelFamily.CLAUDE_3)

        headers = {k.lower(): v for k, v in call.signed_headers.items()}
        assert headers["authorization"].startswith("AWS4-HMAC-SHA256 Credential=AKIATESTKEY/")
        assert "/eu-west-3/bedrock/aws4_request" in headers["authorization"]
        assert headers["accept"] == "application/vnd.amazon.eventstream"
        assert json.loads(call.serialized_body) == claude3_body
        assert call.method == "POST"

    def test_llama_json_headers(self, llama_body):
        inbound = InboundRequest(model_id="us.meta.llama3-2-11b-instruct-v1:0", raw_body=llama_body)
        call = build_outbound_call(inbound, CREDENTIALS, ModelFamily.LLAMA)
        headers = {k.lower(): v for k, v in call.signed_headers.items()}
        assert headers["accept"] == "application/json"
        assert headers["content-type"] == "application/json"


class TestExtractErrorMessage:
    def test_json_message(self):
        assert _extract_error_message(b'{"message": "The security token is invalid"}') == (
            "The security token is invalid"
        )

    def test_raw_text(self):
        assert _extract_error_message(b"Service Unavailable") == "Service Unavailable"

    def test_empty(self):
        assert _extract_error_message(b"") == DEFAULT_UPSTREAM_ERROR_MESSAGE


def mock_client_factory(handler, calls=None):
    """Remplace create_proxy_client par un client sur MockTransport."""
    from bedrock_proxy.proxy.client import ProxyClient

    def factory(timeout, transport=None):
        client = ProxyClient(timeout=timeout, transport=httpx.MockTransport(handler))
        if calls is not None:
            calls.append(client)
        return client

    return factory


class TestInvoke:
    @pytest.mark.asyncio
    async def test_validation_before_network(self):
        calls = []
        inbound = InboundRequest(model_id="amazon.titan-text-express-v1", raw_body={"prompt": "x"})
        with patch("bedrock_proxy.proxy.orchestrator.create_proxy_client",
                   mock_client_factory(lambda r: httpx.Response(200), calls)):
            with pytest.raises(ValidationError) as exc_info:
                await invoke(inbound, CREDENTIALS)
        assert exc_info.value.field == "inputText"
        assert calls == []

    @pytest.mark.asyncio
    async def test_buffered(self, titan_body):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"results": [{"outputText": "Salut"}]})

        inbound = InboundRequest(
            model_id="amazon.titan-text-express-v1", raw_body=titan_body, streaming_requested=False
        )
        with patch("bedrock_proxy.proxy.orchestrator.create_proxy_client", mock_client_factory(handler)):
            result = await invoke(inbound, CREDENTIALS)

        assert result == {"results": [{"outputText": "Salut"}]}
        assert seen["url"].endswith("/model/amazon.titan-text-express-v1/invoke")

    @pytest.mark.asyncio
    async def test_buffered_unparseable(self, titan_body):
        inbound = InboundRequest(
            model_id="amazon.titan-text-express-v1", raw_body=titan_body, streaming_requested=False
        )
        with patch("bedrock_proxy.proxy.orchestrator.create_proxy_client",
                   mock_client_factory(lambda r: httpx.Response(200, content=b""))):
            assert await invoke(inbound, CREDENTIALS) is None

    @pytest.mark.asyncio
    async def test_upstream_error(self, claude3_body):
        calls = []
        inbound = InboundRequest(model_id="anthropic.claude-3-haiku-20240307-v1:0", raw_body=claude3_body)

        def handler(request):
            return httpx.Response(
                403, json={"message": "The security token included in the request is invalid."}
            )

        with patch("bedrock_proxy.proxy.orchestrator.create_proxy_client", mock_client_factory(handler, calls)):
            with pytest.raises(UpstreamError) as exc_info:
                await invoke(inbound, CREDENTIALS)

        assert exc_info.value.message == "The security token included in the request is invalid."
        assert exc_info.value.upstream_status == 403
        assert calls[0]._client is None

    @pytest.mark.asyncio
    async def test_streaming_returns_sse_and_closes(self, titan_body):
        calls = []
        data = chunk_frame({"outputText": "Bon"}) + chunk_frame({"outputText": "jour"})
        inbound = InboundRequest(model_id="amazon.titan-text-express-v1", raw_body=titan_body)

        with patch("bedrock_proxy.proxy.orchestrator.create_proxy_client",
                   mock_client_factory(lambda r: httpx.Response(200, content=data), calls)):
            body = await invoke(inbound, CREDENTIALS)
            frames = [frame async for frame in body]

        assert frames == [
            b'data: {"delta": {"text": "Bon"}}\n\n',
            b'data: {"delta": {"text": "jour"}}\n\n',
        ]
        assert calls[0]._client is None
