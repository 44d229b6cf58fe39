from unittest.mock import patch

import pytest

from fazuh.chalk.config import Config


@pytest.fixture
def fresh_config(monkeypatch):
    monkeypatch.setattr(Config, "_instance", None)
    with patch("fazuh.chalk.config.load_dotenv"):
        yield


def test_config_defaults(fresh_config, monkeypatch):
    monkeypatch.setenv("USERNAME", "2025180071")
    monkeypatch.setenv("PASSWORD", "hunter2")
    for key in ("DEBUG", "BROWSER", "FETCH_TIMEOUT", "DISCORD_WEBHOOK_URL"):
        monkeypatch.delenv(key, raising=False)

    conf = Config()

    assert conf.username == "2025180071"
    assert conf.debug is False
    assert conf.headless is True
    assert conf.browser == "firefox"
    assert conf.fetch_timeout == 30
    assert conf.discord_webhook_url is None


def test_config_is_singleton(fresh_config, monkeypatch):
    monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)

    assert Config() is Config()


def test_config_rejects_unreachable_webhook(fresh_config, monkeypatch):
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", "http://webhook")
    monkeypatch.setenv("DEBUG", "yes")
    monkeypatch.setenv("BROWSER", "Chromium")

    with patch.object(Config, "_is_webhook_valid", return_value=False):
        conf = Config()

    assert conf.discord_webhook_url is None
    assert conf.debug is True
    assert conf.browser == "chromium"
