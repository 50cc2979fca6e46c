"""Tests for application settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from metashelf.config.settings import BUILTIN_PROVIDERS_DIR, Settings


class TestSettingsDefaults:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.server.port == 3000
        assert settings.server.workers == 1
        assert settings.cache.enabled is True
        assert settings.cache.db_path == "./data/cache.db"
        assert settings.providers.directory == BUILTIN_PROVIDERS_DIR
        assert settings.providers.disabled == []
        assert settings.providers.reject_duplicate_ids is False

    def test_builtin_directory_holds_plugins(self) -> None:
        assert (BUILTIN_PROVIDERS_DIR / "example" / "config.json").is_file()
        assert (BUILTIN_PROVIDERS_DIR / "librivox" / "provider.py").is_file()


class TestSettingsSources:
    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("METASHELF_SERVER__PORT", "9090")
        monkeypatch.setenv("METASHELF_CACHE__DB_PATH", ":memory:")
        monkeypatch.setenv("METASHELF_PROVIDERS__DISABLED", '["librivox"]')

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.server.port == 9090
        assert settings.cache.db_path == ":memory:"
        assert settings.providers.disabled == ["librivox"]

    def test_from_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "metashelf-config.yaml"
        config.write_text(
            "server:\n"
            "  port: 8081\n"
            "cache:\n"
            "  enabled: false\n"
            "providers:\n"
            f"  directory: {tmp_path}\n"
            "  disabled: librivox, example\n"
            "  reject_duplicate_ids: true\n",
            encoding="utf-8",
        )

        settings = Settings.from_yaml(config)

        assert settings.server.port == 8081
        assert settings.cache.enabled is False
        assert settings.providers.directory == tmp_path
        assert settings.providers.disabled == ["librivox", "example"]
        assert settings.providers.reject_duplicate_ids is True

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")

    def test_env_outranks_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("METASHELF_SERVER__PORT", "9999")
        config = tmp_path / "metashelf-config.yaml"
        config.write_text("server:\n  port: 8081\n  host: 127.0.0.1\n", encoding="utf-8")

        settings = Settings.from_yaml(config)

        assert settings.server.port == 9999
        assert settings.server.host == "127.0.0.1"
