import pytest

from gymbro.config import Config


def test_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///x.db")
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.setenv("COACH_PROVIDER", "Ollama")
    monkeypatch.setenv("DEV_TOOLS", "yes")
    cfg = Config.from_env()
    assert not cfg.mock_mode
    assert cfg.COACH_PROVIDER == "ollama"
    assert cfg.coach_configured
    assert cfg.DEV_TOOLS
    cfg.validate()


def test_defaults_are_mock_mode():
    cfg = Config()
    assert cfg.mock_mode
    assert not cfg.coach_configured
    assert not cfg.google_configured
    cfg.validate()


def test_database_mode_needs_real_secret():
    with pytest.raises(ValueError):
        Config(DATABASE_URL="sqlite://").validate()


def test_unknown_provider():
    with pytest.raises(ValueError):
        Config(COACH_PROVIDER="bard").validate()
