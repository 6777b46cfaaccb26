"""Tests for opennow.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from opennow.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    global_config_path,
    load_global_config,
    parse_port_list,
    resolve_login_config,
    save_global_config,
)
from opennow.exceptions import ConfigError
from opennow.models import DEFAULT_REDIRECT_PORTS, GlobalConfig, LoginConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("opennow.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "opennow"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("opennow.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "opennow"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("opennow.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "opennow"
        assert result.is_dir()

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("opennow.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".opennow"
        assert get_data_dir() == tmp_path / ".opennow" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "config.json"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        target.write_text("old content", encoding="utf-8")
        _atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        with patch("opennow.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        assert load_global_config() == GlobalConfig()

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        config = GlobalConfig(
            login=LoginConfig(redirect_ports=(7119, 9096), ui_locale="de_DE"),
            default_provider="BPC",
        )
        save_global_config(config)

        assert global_config_path().is_file()
        loaded = load_global_config()
        assert loaded.login.redirect_ports == (7119, 9096)
        assert loaded.login.ui_locale == "de_DE"
        assert loaded.default_provider == "BPC"

    def test_partial_file_keeps_defaults(self, isolated_config: Path) -> None:
        _write_json(global_config_path(), {"login": {"redirect_ports": [8870]}})
        loaded = load_global_config()
        assert loaded.login.redirect_ports == (8870,)
        assert loaded.login.client_id == LoginConfig().client_id

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        global_config_path().write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(global_config_path(), {"login": {"redirect_ports": []}})
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestParsePortList:
    def test_comma_separated(self) -> None:
        assert parse_port_list("2259, 6460,,7119 ") == (2259, 6460, 7119)

    def test_invalid_entry(self) -> None:
        with pytest.raises(ConfigError, match="'abc'"):
            parse_port_list("2259,abc")


class TestResolveLoginConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_login_config()
        assert config.redirect_ports == DEFAULT_REDIRECT_PORTS
        assert config == LoginConfig()

    def test_file_values_used(self, isolated_config: Path) -> None:
        file_cfg = GlobalConfig(login=LoginConfig(redirect_ports=(9096,)))
        assert resolve_login_config(global_config=file_cfg).redirect_ports == (9096,)

    def test_env_overrides_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENNOW_CALLBACK_PORTS", "7119,8870")
        monkeypatch.setenv("OPENNOW_AUTHORIZE_URL", "https://idp.example.test/authorize")
        file_cfg = GlobalConfig(login=LoginConfig(redirect_ports=(9096,)))

        config = resolve_login_config(global_config=file_cfg)
        assert config.redirect_ports == (7119, 8870)
        assert config.authorize_url == "https://idp.example.test/authorize"

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENNOW_CALLBACK_PORTS", "7119,8870")
        assert resolve_login_config(cli_ports=[2259]).redirect_ports == (2259,)

    def test_reads_file_when_not_given(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(login=LoginConfig(redirect_ports=(6460,))))
        assert resolve_login_config().redirect_ports == (6460,)

    def test_invalid_override_raises_config_error(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("OPENNOW_CALLBACK_PORTS", "70000")
        with pytest.raises(ConfigError, match="Invalid login configuration"):
            resolve_login_config()
