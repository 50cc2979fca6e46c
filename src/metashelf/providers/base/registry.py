"""Provider Registry — Discovers, instantiates and indexes provider plugins.

Plugins live in a directory of per-provider subdirectories, each holding::

    <provider>/
        config.json   # declarative ProviderConfig
        provider.py   # entry point exporting the provider class

Loading is best-effort: a broken plugin is logged and skipped, and the
remaining plugins still load.
"""

from __future__ import annotations

import importlib.util
import inspect
import json
import logging
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from metashelf.models.provider import ProviderConfig
from metashelf.providers.base.exceptions import DuplicateProviderError, PluginLoadError, ProviderNotFoundError
from metashelf.providers.base.provider import BaseProvider

if TYPE_CHECKING:
    from metashelf.cache.store import CacheStore

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"
ENTRY_POINT_FILENAME = "provider.py"
PLUGIN_MODULE_PREFIX = "metashelf_plugins"


class LoadReport(BaseModel):
    """Outcome of a bulk plugin load."""

    loaded: list[str] = Field(default_factory=list, description="Ids of registered providers")
    warnings: list[str] = Field(default_factory=list, description="Skipped or failed plugin directories")


class ProviderRegistry:
    """Registry of provider instances keyed by config id.

    The last registration for an id wins unless ``reject_duplicates`` is
    set, in which case a second registration raises.

    Example:
        >>> registry = ProviderRegistry()
        >>> report = registry.load_providers(Path("providers"))
        >>> provider = registry.get("librivox")
    """

    def __init__(self, *, reject_duplicates: bool = False, cache: CacheStore | None = None) -> None:
        self._providers: dict[str, BaseProvider] = {}
        self._reject_duplicates = reject_duplicates
        self._cache = cache

    def register(self, provider: BaseProvider) -> None:
        """Register a provider under its config id and hand it the cache store.

        Raises:
            DuplicateProviderError: If the id is taken and duplicates are rejected.
        """
        provider_id = provider.get_config().id
        if provider_id in self._providers:
            if self._reject_duplicates:
                raise DuplicateProviderError(f"Provider id already registered: {provider_id}")
            logger.warning("Overwriting existing provider registration: %s", provider_id)
        if self._cache is not None:
            provider.cache = self._cache
        self._providers[provider_id] = provider

    def get(self, provider_id: str) -> BaseProvider:
        """Get a registered provider.

        Raises:
            ProviderNotFoundError: If no provider is registered under this id.
        """
        try:
            return self._providers[provider_id]
        except KeyError:
            raise ProviderNotFoundError(provider_id) from None

    def has(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def get_all(self) -> list[BaseProvider]:
        """All providers in registration order."""
        return list(self._providers.values())

    def get_all_configs(self, *, available_only: bool = False) -> list[ProviderConfig]:
        """All provider configs in registration order."""
        configs = [p.get_config() for p in self._providers.values()]
        if available_only:
            return [c for c in configs if c.available]
        return configs

    @property
    def provider_ids(self) -> list[str]:
        return list(self._providers.keys())

    async def aclose_all(self) -> None:
        """Close every provider, logging (not raising) individual failures."""
        for provider_id, provider in self._providers.items():
            try:
                await provider.aclose()
            except Exception:
                logger.warning("Error closing provider: %s", provider_id, exc_info=True)

    # ── Plugin loading ───────────────────────────────────────────────────

    def load_providers(self, root: str | Path, *, disabled: frozenset[str] | set[str] = frozenset()) -> LoadReport:
        """Load every plugin found in the immediate subdirectories of *root*.

        Args:
            root: Directory containing one subdirectory per provider.
            disabled: Provider ids to skip even if their plugin loads.

        Returns:
            A ``LoadReport`` listing registered ids and skipped directories.
        """
        report = LoadReport()
        root_path = Path(root)
        if not root_path.is_dir():
            message = f"Provider directory not found: {root_path}"
            logger.warning(message)
            report.warnings.append(message)
            return report

        for plugin_dir in sorted(p for p in root_path.iterdir() if p.is_dir()):
            if plugin_dir.name.startswith(("_", ".")):
                continue
            try:
                provider = self._load_plugin(plugin_dir, disabled)
            except PluginLoadError as e:
                logger.error("Failed to load provider %s: %s", plugin_dir.name, e, exc_info=e.__cause__ is not None)
                report.warnings.append(f"{plugin_dir.name}: {e}")
                continue
            if provider is None:
                report.warnings.append(f"{plugin_dir.name}: skipped")
                continue
            report.loaded.append(provider.id)

        logger.info("Loaded %d provider(s) from %s", len(report.loaded), root_path)
        return report

    def _load_plugin(self, plugin_dir: Path, disabled: frozenset[str] | set[str]) -> BaseProvider | None:
        """Load, instantiate and register one plugin.

        Returns:
            The registered provider, or ``None`` when the directory is skipped.

        Raises:
            PluginLoadError: If the config, module or constructor is broken.
        """
        config_path = plugin_dir / CONFIG_FILENAME
        entry_path = plugin_dir / ENTRY_POINT_FILENAME

        if not config_path.is_file():
            logger.warning("No %s found for provider: %s", CONFIG_FILENAME, plugin_dir.name)
            return None
        if not entry_path.is_file():
            logger.warning("No %s found for provider: %s", ENTRY_POINT_FILENAME, plugin_dir.name)
            return None

        config = _read_config(config_path)

        if config.id in disabled:
            logger.info("Provider '%s' is disabled, skipping", config.id)
            return None

        missing_env = [name for name in config.required_env if not os.environ.get(name)]
        if missing_env:
            logger.warning(
                "Provider '%s' needs environment variables %s, skipping",
                config.id,
                ", ".join(missing_env),
            )
            return None

        module = _import_entry_point(plugin_dir.name, entry_path)
        provider_class = _find_provider_class(module)
        if provider_class is None:
            logger.warning("No provider class exported by provider: %s", plugin_dir.name)
            return None

        try:
            provider = provider_class(config)
        except Exception as e:
            raise PluginLoadError(f"Constructor failed: {e}") from e

        self.register(provider)
        logger.info("Loaded provider: %s (%s)", config.name, config.id)
        return provider


def _read_config(config_path: Path) -> ProviderConfig:
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return ProviderConfig.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise PluginLoadError(f"Invalid {CONFIG_FILENAME}: {e}") from e


def _import_entry_point(plugin_name: str, entry_path: Path) -> ModuleType:
    module_name = f"{PLUGIN_MODULE_PREFIX}.{plugin_name}"
    spec = importlib.util.spec_from_file_location(module_name, entry_path)
    if spec is None or spec.loader is None:
        raise PluginLoadError(f"Cannot import {entry_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise PluginLoadError(f"Import failed: {e}") from e
    return module


def _find_provider_class(module: ModuleType) -> type[BaseProvider] | None:
    """Prefer an explicit ``Provider`` export, else the single subclass defined in the module."""
    exported = getattr(module, "Provider", None)
    if inspect.isclass(exported) and issubclass(exported, BaseProvider):
        return exported

    candidates = [
        obj
        for obj in vars(module).values()
        if inspect.isclass(obj)
        and issubclass(obj, BaseProvider)
        and obj is not BaseProvider
        and obj.__module__ == module.__name__
        and not inspect.isabstract(obj)
    ]
    return candidates[0] if len(candidates) == 1 else None
