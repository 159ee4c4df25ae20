import os
from pathlib import Path

import pytest

from tempavg.config import DEFAULT_POLL_INTERVAL, load_settings
from tempavg.errors import ConfigError


def test_defaults_with_empty_environment():
    settings = load_settings({})
    assert settings.source_file == Path("data/measurements.csv")
    assert settings.poll_interval == DEFAULT_POLL_INTERVAL == 5.0
    assert settings.skip_malformed is False
    assert settings.atomic_swap is False
    assert settings.watch_idle_only is True
    assert settings.port == 8080


def test_values_are_read_from_environment():
    settings = load_settings(
        {
            "TEMPAVG_SOURCE_FILE": "/srv/example.csv",
            "TEMPAVG_POLL_INTERVAL": "0.5",
            "TEMPAVG_SKIP_MALFORMED": "yes",
            "TEMPAVG_ATOMIC_SWAP": "1",
            "TEMPAVG_LOG_LEVEL": "debug",
            "TEMPAVG_PORT": "9000",
        }
    )
    assert settings.source_file == Path("/srv/example.csv")
    assert settings.poll_interval == 0.5
    assert settings.skip_malformed and settings.atomic_swap
    assert settings.log_level == "DEBUG"
    assert settings.port == 9000


@pytest.mark.parametrize(
    "env",
    [
        {"TEMPAVG_POLL_INTERVAL": "0"},
        {"TEMPAVG_POLL_INTERVAL": "soon"},
        {"TEMPAVG_SKIP_MALFORMED": "maybe"},
        {"TEMPAVG_PORT": "70000"},
    ],
)
def test_invalid_values_raise(env):
    with pytest.raises(ConfigError):
        load_settings(env)


def test_dotenv_file_is_honoured(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("TEMPAVG_POLL_INTERVAL=2.5\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TEMPAVG_POLL_INTERVAL", raising=False)
    try:
        assert load_settings().poll_interval == 2.5
    finally:
        # load_dotenv writes os.environ directly, monkeypatch does not know about it
        os.environ.pop("TEMPAVG_POLL_INTERVAL", None)
