"""Base provider interface — Abstract class, registry and errors for metadata plugins."""

from metashelf.providers.base.provider import BaseProvider
from metashelf.providers.base.registry import LoadReport, ProviderRegistry

__all__ = ["BaseProvider", "LoadReport", "ProviderRegistry"]
