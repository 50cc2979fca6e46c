"""Metadata normalizer — Turns loosely shaped provider records into ``BookMetadata``.

``normalize_book_metadata`` is a total function: any input, including
``None`` or a record full of wrong-typed values, yields a ``BookMetadata``.
Each field degrades to ``None`` on its own instead of raising.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

import nh3

from metashelf.models.metadata import BookMetadata, SeriesMetadata

ALLOWED_DESCRIPTION_TAGS: frozenset[str] = frozenset({"b", "i", "em", "strong", "p", "br", "ul", "ol", "li"})

_NUMERIC_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_STRING_FIELDS = (
    "subtitle",
    "author",
    "narrator",
    "publisher",
    "cover",
    "isbn",
    "asin",
    "language",
)


def _scrub(text: str) -> str:
    """Replace lone surrogates (valid in JSON escapes, not encodable as UTF-8) with ``?``."""
    return text.encode("utf-8", "replace").decode("utf-8")


def sanitize_html(html: str) -> str:
    """Strip every tag outside the allow-list and every attribute.

    Text content of removed tags is kept, except for ``script`` and ``style``
    bodies which are dropped entirely.
    """
    return nh3.clean(
        _scrub(html),
        tags=set(ALLOWED_DESCRIPTION_TAGS),
        attributes={},
        link_rel=None,
    )


def to_str_or_none(value: Any) -> str | None:
    """Return the trimmed string, or ``None`` for non-strings and blank strings."""
    if isinstance(value, str):
        stripped = _scrub(value).strip()
        return stripped or None
    return None


def _string_list(value: Any) -> list[str] | None:
    """All-or-nothing: any non-string element drops the whole list."""
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    items = [text for text in (to_str_or_none(item) for item in value) if text]
    return items or None


def _sequence(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError:
            # exceeds the interpreter's int-to-str digit limit
            return None
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else str(value)
    return to_str_or_none(value)


def validate_series(value: Any) -> list[SeriesMetadata] | None:
    """Keep each well-formed series entry, drop the rest.

    Returns ``None`` when nothing survives.
    """
    if not isinstance(value, list):
        return None
    entries: list[SeriesMetadata] = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        name = to_str_or_none(item.get("series"))
        if name is None:
            continue
        entries.append(SeriesMetadata(series=name, sequence=_sequence(item.get("sequence"))))
    return entries or None


def _duration(value: Any) -> int | float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            num = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str) and _NUMERIC_RE.fullmatch(value.strip()):
        num = float(value.strip())
    else:
        return None
    if not math.isfinite(num):
        return None
    return int(num) if num.is_integer() else num


def _description(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return to_str_or_none(sanitize_html(value))


def normalize_book_metadata(data: Any) -> BookMetadata:
    """Normalize a provider record into ``BookMetadata``.

    Args:
        data: A mapping using canonical field names (``publishedYear`` in
            camelCase). Anything that is not a mapping is treated as empty.

    Returns:
        A ``BookMetadata`` whose ``title`` is always a string.
    """
    record: Mapping[str, Any] = data if isinstance(data, Mapping) else {}

    fields: dict[str, Any] = {name: to_str_or_none(record.get(name)) for name in _STRING_FIELDS}

    return BookMetadata(
        title=to_str_or_none(record.get("title")) or "",
        published_year=to_str_or_none(record.get("publishedYear")),
        description=_description(record.get("description")),
        genres=_string_list(record.get("genres")),
        tags=_string_list(record.get("tags")),
        series=validate_series(record.get("series")),
        duration=_duration(record.get("duration")),
        **fields,
    )
