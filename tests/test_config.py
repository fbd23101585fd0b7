"""Tests for application settings."""

from interview_coach.config import Settings


def test_defaults_from_yaml():
    settings = Settings()
    assert settings.port == 8000
    assert "http://localhost:3000" in settings.allowed_origins


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setenv("APP_SECRET", "s3cret")
    settings = Settings()
    assert settings.port == 9001
    assert settings.app_secret == "s3cret"


def test_storage_directories_are_created(tmp_path):
    settings = Settings(storage_dir=tmp_path / "store")
    assert settings.memory_dir == tmp_path / "store" / "memory"
    assert settings.memory_dir.is_dir()
    assert settings.history_dir.is_dir()


def test_relative_storage_dir_resolves_against_project_root(tmp_path):
    settings = Settings(storage_dir="data", project_root=tmp_path)
    assert settings.data_dir == tmp_path / "data"
