"""Tests for environment-driven settings."""

import os
import subprocess
import sys

import pytest

from perfectxo.config import Settings


def test_defaults_without_environment():
    settings = Settings.from_env({})
    assert settings == Settings()
    assert settings.ai_think_delay == (0.4, 0.9)


def test_overrides_from_environment():
    settings = Settings.from_env(
        {
            "PERFECTXO_HOST": "127.0.0.1",
            "PERFECTXO_PORT": "9000",
            "PERFECTXO_AI_DELAY_MIN": "0",
            "PERFECTXO_AI_DELAY_MAX": "0.25",
            "PERFECTXO_LOG_LEVEL": "debug",
        }
    )
    assert settings.host == "127.0.0.1"
    assert settings.port == 9000
    assert settings.ai_think_delay == (0.0, 0.25)
    assert settings.log_level == "DEBUG"


def test_delays_are_clamped():
    settings = Settings.from_env(
        {"PERFECTXO_AI_DELAY_MIN": "-1", "PERFECTXO_AI_DELAY_MAX": "-5"}
    )
    assert settings.ai_think_delay == (0.0, 0.0)


@pytest.mark.parametrize(
    "name, value",
    [
        ("PERFECTXO_PORT", "http"),
        ("PERFECTXO_AI_DELAY_MAX", "soon"),
        ("PERFECTXO_LOG_LEVEL", "verbose"),
    ],
)
def test_malformed_values_raise(name, value):
    with pytest.raises(ValueError, match=name):
        Settings.from_env({name: value})


def test_core_imports_with_malformed_server_settings():
    env = dict(os.environ, PERFECTXO_PORT="http", PERFECTXO_LOG_LEVEL="verbose")
    result = subprocess.run(
        [
            sys.executable,
            "-c",
            "import perfectxo\n"
            "from perfectxo.game import evaluate, new_board\n"
            "print(evaluate(new_board()).state)",
        ],
        env=env,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "continue"
