"""Tests for application wiring: lifespan, exception handlers and the entrypoint."""

import logging

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import SPEECH_API_URL, FakeTokenProvider, SpeechStub
from stt_relay import entrypoint
from stt_relay.api import main as main_module
from stt_relay.api.main import create_app
from stt_relay.config import RelayConfig
from stt_relay.core.speech_client import GoogleSpeechClient

AUDIO = b"\x00\x01\x02\x03\x04"


class _ExplodingTokenProvider(FakeTokenProvider):
    async def get_token(self, credentials):
        raise RuntimeError("signer crashed")


def _build_app(config_path, token_provider=None, stub=None):
    return create_app(
        config_path=config_path,
        token_provider=token_provider or FakeTokenProvider(),
        speech_client=GoogleSpeechClient(
            api_url=SPEECH_API_URL,
            transport=httpx.MockTransport(stub or SpeechStub()),
        ),
    )


def test_lifespan_sets_up_logging_and_warns_without_credentials(
    monkeypatch, caplog, config_path, without_credentials
):
    seen_configs = []
    monkeypatch.setattr(main_module, "setup_logging", seen_configs.append)

    with caplog.at_level(logging.WARNING, logger="sttrelay.api"):
        with TestClient(_build_app(config_path)) as client:
            assert client.get("/").status_code == 200

    assert seen_configs == [{"level": "DEBUG", "file_output": False}]
    assert any("No service credentials configured" in r.getMessage() for r in caplog.records)


def test_lifespan_quiet_with_credentials(monkeypatch, caplog, config_path, with_credentials):
    monkeypatch.setattr(main_module, "setup_logging", lambda config: None)

    with caplog.at_level(logging.WARNING, logger="sttrelay.api"):
        with TestClient(_build_app(config_path)):
            pass

    assert not any("No service credentials" in r.getMessage() for r in caplog.records)


def test_unexpected_error_returns_generic_500(config_path, with_credentials):
    stub = SpeechStub()
    app = _build_app(config_path, token_provider=_ExplodingTokenProvider(), stub=stub)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/", content=AUDIO)

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "signer crashed" not in response.text
    assert stub.requests == []


@pytest.fixture
def server_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n  host: 127.0.0.1\n  port: 9100\nlogging:\n  level: WARNING\n",
        encoding="utf-8",
    )
    return RelayConfig(path)


@pytest.fixture
def uvicorn_calls(monkeypatch, server_config):
    calls = []
    monkeypatch.setattr(entrypoint, "get_config", lambda: server_config)
    monkeypatch.setattr(
        entrypoint.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
    )
    for name in ("SERVER_HOST", "SERVER_PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return calls


def test_entrypoint_uses_config_server_section(uvicorn_calls):
    entrypoint.main()

    app, kwargs = uvicorn_calls[0]
    assert app == "stt_relay.api.main:app"
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9100
    assert kwargs["log_level"] == "warning"


def test_entrypoint_environment_overrides_config(uvicorn_calls, monkeypatch):
    monkeypatch.setenv("SERVER_HOST", "0.0.0.0")
    monkeypatch.setenv("SERVER_PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    entrypoint.main()

    _, kwargs = uvicorn_calls[0]
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 8080
    assert kwargs["log_level"] == "debug"
