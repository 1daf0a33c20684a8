"""Unit tests for ClientConfig."""

import pytest

from serverquery.config import DEFAULT_PORT, ClientConfig


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig()

        assert config.host == "127.0.0.1"
        assert config.port == DEFAULT_PORT == 10011
        assert config.banner_lines == 2
        assert config.command_timeout is None
        assert config.pipeline is True
        assert config.read_limit > 64 * 1024

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SERVERQUERY_HOST", "ts.example.org")
        monkeypatch.setenv("SERVERQUERY_PORT", "10022")
        monkeypatch.setenv("SERVERQUERY_TIMEOUT", "2.5")
        monkeypatch.setenv("SERVERQUERY_PIPELINE", "0")

        config = ClientConfig.from_env()

        assert config.host == "ts.example.org"
        assert config.port == 10022
        assert config.command_timeout == 2.5
        assert config.pipeline is False

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("SERVERQUERY_HOST", "ts.example.org")

        config = ClientConfig.from_env(host="10.0.0.1", port=None)

        assert config.host == "10.0.0.1"
        assert config.port == DEFAULT_PORT

    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_pipeline_truthy(self, monkeypatch, value):
        monkeypatch.setenv("SERVERQUERY_PIPELINE", value)

        assert ClientConfig.from_env().pipeline is True
