# tests/test_config.py
"""
Tests for environment overrides in config.
"""

import logging

import config

def test_get_env_uses_default_when_unset(monkeypatch):
    monkeypatch.delenv("BINANCE_TIMEOUT", raising=False)
    assert config.get_env("BINANCE_TIMEOUT", 5, config.positive_int) == 5

def test_get_env_casts_override(monkeypatch):
    monkeypatch.setenv("BINANCE_TIMEOUT", "12")
    assert config.get_env("BINANCE_TIMEOUT", 5, config.positive_int) == 12

def test_get_env_invalid_value_falls_back(monkeypatch, caplog):
    monkeypatch.setenv("BINANCE_TIMEOUT", "five")
    with caplog.at_level(logging.WARNING):
        assert config.get_env("BINANCE_TIMEOUT", 5, config.positive_int) == 5
    assert "BINANCE_TIMEOUT" in caplog.text

def test_get_env_rejects_non_positive_timeout(monkeypatch):
    monkeypatch.setenv("BINANCE_TIMEOUT", "0")
    assert config.get_env("BINANCE_TIMEOUT", 5, config.positive_int) == 5
