"""Parameter parsing — Maps ``name:value`` path tokens onto a provider's declared schema.

Requests address providers as ``/<providerId>/<name:value>/.../search``.
Parsing resolves the provider first (404 before any parameter work), then
walks the declared parameters in order, failing on the first missing or
invalid one, and finally rejects any supplied name the provider does not
declare.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, ConfigDict

from metashelf.core.validator import validate
from metashelf.models.provider import ParsedParameters, ProviderConfig
from metashelf.providers.base.exceptions import (
    InvalidParameterError,
    MissingParameterError,
    UnknownParameterError,
)
from metashelf.providers.base.provider import BaseProvider
from metashelf.providers.base.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class ParsedRequest(BaseModel):
    """A resolved provider together with its validated parameters."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    provider: BaseProvider
    params: ParsedParameters


def split_param_path(path: str | None) -> list[str]:
    """Split the raw path between the provider id and the action into tokens."""
    if not path:
        return []
    return [segment for segment in path.split("/") if segment]


def parse_param_tokens(tokens: Iterable[str]) -> list[tuple[str, str]]:
    """Turn ``name:value`` tokens into pairs, dropping tokens without a colon.

    Only the first colon separates name from value, so values may contain
    colons themselves.
    """
    pairs: list[tuple[str, str]] = []
    for token in tokens:
        if not token:
            continue
        name, sep, value = token.partition(":")
        if not sep:
            continue
        pairs.append((name, value))
    return pairs


def parse_provider_params(config: ProviderConfig, tokens: Iterable[str]) -> ParsedParameters:
    """Validate path tokens against *config*'s declared parameters.

    Args:
        config: The provider configuration declaring the parameter schema.
        tokens: Raw ``name:value`` path segments.

    Returns:
        The typed parameters, keyed by declared name.

    Raises:
        MissingParameterError: A required parameter was not supplied.
        InvalidParameterError: A supplied value failed its rule.
        UnknownParameterError: A supplied name is not declared.
    """
    pairs = parse_param_tokens(tokens)
    supplied: dict[str, str] = {}
    for name, value in pairs:
        supplied.setdefault(name, value)

    parsed: ParsedParameters = {}
    for spec in config.parameters:
        if spec.name not in supplied:
            if spec.required:
                raise MissingParameterError(spec.name)
            continue

        result = validate(supplied[spec.name], spec.validation)
        if not result.valid:
            raise InvalidParameterError(spec.name, result.error or "Invalid value")
        parsed[spec.name] = result.parsed_value  # type: ignore[assignment]

    declared = {spec.name for spec in config.parameters}
    for name in supplied:
        if name not in declared:
            raise UnknownParameterError(name)

    return parsed


def parse_request_params(registry: ProviderRegistry, provider_id: str, tokens: Iterable[str]) -> ParsedRequest:
    """Resolve *provider_id* and parse *tokens* against its schema.

    Raises:
        ProviderNotFoundError: If the provider is not registered.
    """
    provider = registry.get(provider_id)
    params = parse_provider_params(provider.get_config(), tokens)
    logger.debug("Parsed parameters for %s: %s", provider_id, params)
    return ParsedRequest(provider=provider, params=params)


def _format_param_value(value: str | int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def create_parameters_hash(params: Mapping[str, str | int | float]) -> str:
    """Stable MD5 digest of *params*, independent of insertion order."""
    canonical = "&".join(f"{key}={_format_param_value(params[key])}" for key in sorted(params))
    return hashlib.md5(canonical.encode("utf-8"), usedforsecurity=False).hexdigest()
