from __future__ import annotations

import logging

import pytest

from consolidator.config import (
    ConfigurationError,
    log_level_from_env,
    optional_int_env_var,
)


def test_optional_int_env_var(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)
    assert optional_int_env_var("EXAMPLE_INT", default=5) == 5

    monkeypatch.setenv("EXAMPLE_INT", "12")
    assert optional_int_env_var("EXAMPLE_INT", default=5) == 12

    monkeypatch.setenv("EXAMPLE_INT", "twelve")
    with pytest.raises(ConfigurationError, match="EXAMPLE_INT"):
        optional_int_env_var("EXAMPLE_INT", default=5)


def test_log_level_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CONSOLIDATOR_LOG_LEVEL", raising=False)
    assert log_level_from_env() == logging.INFO

    monkeypatch.setenv("CONSOLIDATOR_LOG_LEVEL", "debug")
    assert log_level_from_env() == logging.DEBUG

    monkeypatch.setenv("CONSOLIDATOR_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigurationError):
        log_level_from_env()
