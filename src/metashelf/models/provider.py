"""Provider configuration models — Declarative provider descriptors and parameter schemas.

Each provider plugin ships a ``config.json`` that is parsed into a
``ProviderConfig``. Parameter validation rules form a tagged union keyed on
``type``; a rule with an unrecognised ``type`` is kept as ``UnknownRule`` so
the failure surfaces when a value is validated rather than at startup.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator, model_validator

from metashelf.models.metadata import METADATA_FIELDS

ParsedParameters = dict[str, str | int | float]
"""Validated, typed request parameters handed to a provider."""


class EnumRule(BaseModel):
    """Value must be one of ``values`` (exact match)."""

    type: Literal["enum"] = "enum"
    values: list[str] = Field(default_factory=list)


class RegexRule(BaseModel):
    """Value must match ``pattern``; the pattern controls its own anchoring."""

    type: Literal["regex"] = "regex"
    pattern: str | None = None


class NumberRule(BaseModel):
    """Value must parse as a decimal number within the inclusive bounds."""

    type: Literal["number"] = "number"
    min: int | float | None = None
    max: int | float | None = None


class IntRule(BaseModel):
    """Value must parse as an integer within the inclusive bounds."""

    type: Literal["int"] = "int"
    min: int | None = None
    max: int | None = None


class StringRule(BaseModel):
    """Value length must lie within the inclusive bounds."""

    type: Literal["string"] = "string"
    min: int | None = None
    max: int | None = None


class UnknownRule(BaseModel):
    """Placeholder for a rule whose ``type`` is not recognised."""

    model_config = ConfigDict(extra="allow")

    type: str = ""


_RULE_TYPES = frozenset({"enum", "regex", "number", "int", "string"})


def _rule_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if tag in _RULE_TYPES else "unknown"


ValidationRule = Annotated[
    Union[
        Annotated[EnumRule, Tag("enum")],
        Annotated[RegexRule, Tag("regex")],
        Annotated[NumberRule, Tag("number")],
        Annotated[IntRule, Tag("int")],
        Annotated[StringRule, Tag("string")],
        Annotated[UnknownRule, Tag("unknown")],
    ],
    Discriminator(_rule_tag),
]


class ProviderParameter(BaseModel):
    """Declarative schema of one provider parameter."""

    name: str = Field(min_length=1, description="Parameter name, unique within a provider")
    required: bool = Field(default=False, description="Whether the parameter must be supplied")
    validation: ValidationRule = Field(description="Validation rule applied to supplied values")
    description: str | None = Field(default=None, description="Human readable description")


class ProviderConfig(BaseModel):
    """Immutable descriptor of a provider, loaded once from its ``config.json``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(pattern=r"^[A-Za-z0-9_-]+$", description="Unique, URL-safe provider id")
    name: str = Field(description="Display name")
    description: str = Field(default="", description="What the provider searches")
    url: str | None = Field(default=None, description="Upstream site URL")
    available: bool = Field(default=True, description="Whether the provider is listed")
    parameters: list[ProviderParameter] = Field(default_factory=list, description="Declared parameters, in order")
    returned_fields: list[str] = Field(
        default_factory=list,
        alias="returnedFields",
        description="Canonical metadata fields the provider fills",
    )
    comments: list[str] = Field(default_factory=list, description="Free-text notes")
    required_env: list[str] = Field(
        default_factory=list,
        alias="requiredEnv",
        description="Environment variables the provider needs",
    )

    @field_validator("returned_fields")
    @classmethod
    def _known_fields(cls, v: list[str]) -> list[str]:
        unknown = [f for f in v if f not in METADATA_FIELDS]
        if unknown:
            raise ValueError(f"Unknown metadata fields: {', '.join(unknown)}")
        return v

    @model_validator(mode="after")
    def _unique_parameter_names(self) -> ProviderConfig:
        seen: set[str] = set()
        for param in self.parameters:
            if param.name in seen:
                raise ValueError(f"Duplicate parameter name: {param.name}")
            seen.add(param.name)
        return self


class ProvidersResponse(BaseModel):
    """Response body of ``GET /providers``."""

    providers: list[ProviderConfig] = Field(default_factory=list)
