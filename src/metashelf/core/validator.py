"""Parameter validator — Evaluates one validation rule against one raw string value.

Validation is pure and never raises: every outcome, including a broken rule
(undefined enum values, uncompilable regex, unknown rule type), is reported
as a ``ValidationResult``. Values are never trimmed or normalized.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, Field

from metashelf.models.provider import EnumRule, IntRule, NumberRule, RegexRule, StringRule

# Plain decimal notation with optional sign, fraction and exponent.
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class ValidationResult(BaseModel):
    """Outcome of validating one value."""

    valid: bool = Field(description="Whether the value satisfied the rule")
    parsed_value: str | int | float | None = Field(default=None, description="Typed value when valid")
    error: str | None = Field(default=None, description="Reason when invalid")


def _fail(error: str) -> ValidationResult:
    return ValidationResult(valid=False, error=error)


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _validate_enum(value: str, rule: EnumRule) -> ValidationResult:
    if not rule.values:
        return _fail("Enum values not defined")
    if value in rule.values:
        return ValidationResult(valid=True, parsed_value=value)
    return _fail(f"Value must be one of: {', '.join(rule.values)}")


def _validate_regex(value: str, rule: RegexRule) -> ValidationResult:
    if not rule.pattern:
        return _fail("Regex pattern not defined")
    try:
        compiled = re.compile(rule.pattern)
    except re.error:
        return _fail("Invalid regex pattern")
    if compiled.search(value):
        return ValidationResult(valid=True, parsed_value=value)
    return _fail(f"Value does not match pattern: {rule.pattern}")


def _check_bounds(num: float, rule: NumberRule | IntRule) -> str | None:
    if rule.min is not None and num < rule.min:
        return f"Value must be at least {_format_bound(rule.min)}"
    if rule.max is not None and num > rule.max:
        return f"Value must be at most {_format_bound(rule.max)}"
    return None


def _parse_decimal(value: str) -> float | None:
    if not _DECIMAL_RE.fullmatch(value):
        return None
    num = float(value)
    return num if math.isfinite(num) else None


def _validate_number(value: str, rule: NumberRule) -> ValidationResult:
    num = _parse_decimal(value)
    if num is None:
        return _fail("Value must be a number")
    error = _check_bounds(num, rule)
    if error:
        return _fail(error)
    return ValidationResult(valid=True, parsed_value=num)


def _validate_int(value: str, rule: IntRule) -> ValidationResult:
    num = _parse_decimal(value)
    if num is None:
        return _fail("Value must be a number")
    if not num.is_integer():
        return _fail("Value must be an integer")
    error = _check_bounds(num, rule)
    if error:
        return _fail(error)
    return ValidationResult(valid=True, parsed_value=int(num))


def _validate_string(value: str, rule: StringRule) -> ValidationResult:
    if rule.min is not None and len(value) < rule.min:
        return _fail(f"Value must be at least {rule.min} characters")
    if rule.max is not None and len(value) > rule.max:
        return _fail(f"Value must be at most {rule.max} characters")
    return ValidationResult(valid=True, parsed_value=value)


_VALIDATORS: dict[str, Callable[[str, Any], ValidationResult]] = {
    "enum": _validate_enum,
    "regex": _validate_regex,
    "number": _validate_number,
    "int": _validate_int,
    "string": _validate_string,
}

_RULE_CLASSES: dict[str, type[BaseModel]] = {
    "enum": EnumRule,
    "regex": RegexRule,
    "number": NumberRule,
    "int": IntRule,
    "string": StringRule,
}


def validate(value: str, rule: Any) -> ValidationResult:
    """Validate *value* against *rule*.

    Args:
        value: The raw string taken from the request.
        rule: A validation rule model (see ``metashelf.models.provider``).

    Returns:
        A ``ValidationResult``; ``parsed_value`` is a ``str`` for enum, regex
        and string rules, ``float`` for number rules and ``int`` for int rules.
    """
    tag = getattr(rule, "type", None)
    validator = _VALIDATORS.get(tag) if isinstance(tag, str) else None
    if validator is None or not isinstance(rule, _RULE_CLASSES[tag]):
        return _fail("Unknown validation type")
    return validator(value, rule)
