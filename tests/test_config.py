"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from albion_sheets.access import RevokePolicy
from albion_sheets.config import Settings, resolve_credentials_path


def test_defaults():
    settings = Settings.from_env({})
    assert settings.revoke_policy is RevokePolicy.STRICT
    assert settings.sheet_name == "Sheet1"
    assert settings.owner_email is None
    assert settings.log_level == "INFO"


def test_overrides(tmp_path):
    key = tmp_path / "key.json"
    key.write_text("{}", encoding="utf-8")
    settings = Settings.from_env({
        "ALBION_GOOGLE_CREDENTIALS": str(key),
        "ALBION_OWNER_EMAIL": "boss@example.com",
        "ALBION_REVOKE_POLICY": "all",
        "ALBION_SHEET_NAME": "Stats",
        "ALBION_LOG_LEVEL": "debug",
    })
    assert settings.credentials_path == key.resolve()
    assert settings.owner_email == "boss@example.com"
    assert settings.revoke_policy is RevokePolicy.ALL
    assert settings.sheet_name == "Stats"
    assert settings.log_level == "DEBUG"


def test_bad_policy():
    with pytest.raises(ValueError):
        Settings.from_env({"ALBION_REVOKE_POLICY": "first-only"})


def test_credentials_folder_fallback(tmp_path):
    creds = tmp_path / "Credentials"
    creds.mkdir()
    (creds / "b.json").write_text("{}", encoding="utf-8")
    (creds / "a.json").write_text("{}", encoding="utf-8")
    assert resolve_credentials_path(tmp_path) == (creds / "a.json").resolve()


def test_missing_env_path_is_none(tmp_path):
    assert resolve_credentials_path(tmp_path, str(tmp_path / "missing.json")) is None
    assert resolve_credentials_path(Path(tmp_path / "empty")) is None
