"""Tests for client configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from taskboard.config import ClientConfig, default_config_path, load_client_config
from taskboard.constants import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("TASKBOARD_API_URL", "TASKBOARD_TIMEOUT", "TASKBOARD_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file(tmp_path: Path) -> None:
    config, err = load_client_config(tmp_path / "missing.yaml")
    assert err is None
    assert config == ClientConfig()
    assert config.api_url == DEFAULT_API_URL
    assert config.timeout == DEFAULT_TIMEOUT_SECONDS


def test_default_path_under_home(tmp_path: Path) -> None:
    assert default_config_path() == tmp_path / ".taskboard" / "config.yaml"
    config, err = load_client_config()
    assert err is None
    assert config.api_url == DEFAULT_API_URL


def test_reads_yaml(tmp_path: Path) -> None:
    path = _write(tmp_path, "api_url: http://localhost:5000/\ntimeout: 12\nlog_level: debug\n")
    config, err = load_client_config(path)
    assert err is None
    assert config.api_url == "http://localhost:5000"
    assert config.timeout == 12.0
    assert config.log_level == "DEBUG"


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, "api_url: http://file\ntimeout: 12\n")
    monkeypatch.setenv("TASKBOARD_API_URL", "http://env/")
    monkeypatch.setenv("TASKBOARD_TIMEOUT", "3.5")
    monkeypatch.setenv("TASKBOARD_LOG_LEVEL", "warning")
    config, err = load_client_config(path)
    assert err is None
    assert config.api_url == "http://env"
    assert config.timeout == 3.5
    assert config.log_level == "WARNING"


def test_bad_timeouts_fall_back(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, "timeout: soon\n")
    config, _ = load_client_config(path)
    assert config.timeout == DEFAULT_TIMEOUT_SECONDS

    path = _write(tmp_path, "timeout: 8\n")
    monkeypatch.setenv("TASKBOARD_TIMEOUT", "0")
    config, _ = load_client_config(path)
    assert config.timeout == 8.0


def test_empty_file(tmp_path: Path) -> None:
    config, err = load_client_config(_write(tmp_path, ""))
    assert err is None
    assert config == ClientConfig()


@pytest.mark.parametrize(
    "text, message",
    [
        ("api_url: [unterminated\n", "Unable to read"),
        ("- one\n- two\n", "must contain a mapping"),
    ],
)
def test_invalid_file_reports_error(tmp_path: Path, text: str, message: str) -> None:
    config, err = load_client_config(_write(tmp_path, text))
    assert err is not None and message in err
    assert config == ClientConfig()
