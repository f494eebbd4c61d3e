from __future__ import annotations

import pytest
from pydantic import ValidationError

from resource_monitor.config import Settings

ENV_VARS = (
    "BASE_PATH",
    "AVAILABLE_INODE",
    "AVAILABLE_SPACE",
    "FIND_TIMEOUT_SECONDS",
    "DU_TIMEOUT_SECONDS",
    "DF_TIMEOUT_SECONDS",
    "FILE_COUNT_STRATEGY",
    "API_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.base_path is None
    assert settings.available_inode is None
    assert settings.available_space is None
    assert settings.find_timeout_seconds == 180
    assert settings.du_timeout_seconds == 300
    assert settings.df_timeout_seconds == 60
    assert settings.file_count_strategy == "find"
    assert settings.check_attempts == 3
    assert settings.inode_warning == 100_000
    assert settings.space_critical == 5_000


def test_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("BASE_PATH", "/srv/data")
    monkeypatch.setenv("AVAILABLE_INODE", "12000")
    monkeypatch.setenv("AVAILABLE_SPACE", "2048")
    monkeypatch.setenv("DU_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("FILE_COUNT_STRATEGY", "native")

    settings = Settings(_env_file=None)

    assert settings.base_path == "/srv/data"
    assert settings.available_inode == 12000
    assert settings.available_space == 2048
    assert settings.du_timeout_seconds == 30
    assert settings.file_count_strategy == "native"


@pytest.mark.parametrize("value", ["", "  ", "0"])
def test_blank_or_zero_override_is_unset(monkeypatch, value: str) -> None:
    monkeypatch.setenv("AVAILABLE_INODE", value)
    monkeypatch.setenv("BASE_PATH", "")

    settings = Settings(_env_file=None)

    assert settings.available_inode is None
    assert settings.base_path is None


@pytest.mark.parametrize(
    "name, value",
    [
        ("AVAILABLE_SPACE", "lots"),
        ("AVAILABLE_SPACE", "-5"),
        ("DF_TIMEOUT_SECONDS", "0"),
        ("FILE_COUNT_STRATEGY", "guess"),
    ],
)
def test_invalid_values(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_settings_are_immutable() -> None:
    settings = Settings(_env_file=None, base_path="/srv/data")

    with pytest.raises(ValidationError):
        settings.base_path = "/elsewhere"
