"""Tests for tenminmail.config."""

import pytest

from tenminmail.config import BASE_URL, ClientConfig


def test_defaults(monkeypatch):
    for name in ("TENMINMAIL_BASE_URL", "TENMINMAIL_TIMEOUT", "TENMINMAIL_POLL_INTERVAL"):
        monkeypatch.delenv(name, raising=False)

    config = ClientConfig.from_env()

    assert config.base_url == BASE_URL
    assert config.timeout == 10.0
    assert config.poll_interval == 2.0


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("TENMINMAIL_BASE_URL", "http://localhost:9000/")
    monkeypatch.setenv("TENMINMAIL_TIMEOUT", "2.5")
    monkeypatch.setenv("TENMINMAIL_POLL_INTERVAL", "5")

    config = ClientConfig.from_env()

    assert config.base_url == "http://localhost:9000"
    assert config.timeout == 2.5
    assert config.poll_interval == 5.0


@pytest.mark.parametrize("value", ["soon", "0", "-1"])
def test_rejects_bad_numbers(monkeypatch, value):
    monkeypatch.setenv("TENMINMAIL_TIMEOUT", value)

    with pytest.raises(ValueError, match="TENMINMAIL_TIMEOUT"):
        ClientConfig.from_env()
