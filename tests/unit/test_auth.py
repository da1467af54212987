"""
Tests unitaires pour le contrôle d'accès.
"""
import logging

import pytest

from bedrock_proxy.api.auth import check_access
from bedrock_proxy.config.settings import ServerConfig
from bedrock_proxy.core.exceptions import AuthError


@pytest.fixture
def gated_config():
    return ServerConfig.with_codes(["code-secret", "autre-code"])


def test_open_server_passes_header_through():
    result = check_access("Bearer a:b:c", ServerConfig())
    assert result.authorization == "Bearer a:b:c"
    assert not result.uses_system_key


def test_valid_access_code(gated_config):
    result = check_access("Bearer code-secret", gated_config)
    assert result.authorization == "Bearer code-secret"


def test_wrong_access_code(gated_config):
    with pytest.raises(AuthError) as exc_info:
        check_access("Bearer mauvais", gated_config)
    assert exc_info.value.message == "wrong access code"
    assert exc_info.value.status_code == 401


@pytest.mark.parametrize("header", [None, "", "   "])
def test_empty_access_code(gated_config, header):
    with pytest.raises(AuthError) as exc_info:
        check_access(header, gated_config)
    assert exc_info.value.message == "empty access code"


def test_user_api_key_bypasses_code(gated_config):
    result = check_access("sk-user-key", gated_config)
    assert result.authorization == "sk-user-key"
    assert not result.uses_system_key


def test_system_key_injected():
    config = ServerConfig.with_codes(["code-secret"], api_key="system-key")
    result = check_access("Bearer code-secret", config)
    assert result.authorization == "Bearer system-key"
    assert result.uses_system_key


def test_access_code_never_logged(gated_config, caplog):
    caplog.set_level(logging.DEBUG, logger="bedrock_proxy")
    with pytest.raises(AuthError):
        check_access("Bearer mauvais-code", gated_config)
    check_access("Bearer code-secret", gated_config)
    assert "mauvais-code" not in caplog.text
    assert "code-secret" not in caplog.text
