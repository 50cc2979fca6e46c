"""Tests for the metadata normalizer."""

from __future__ import annotations

import json
from typing import Any

import pytest

from metashelf.core.normalizer import (
    normalize_book_metadata,
    sanitize_html,
    to_str_or_none,
    validate_series,
)
from metashelf.models.metadata import BookMetadata, SeriesMetadata


class TestToStrOrNone:
    @pytest.mark.parametrize(("value", "expected"), [("  Dune ", "Dune"), ("x", "x")])
    def test_trims_strings(self, value: str, expected: str) -> None:
        assert to_str_or_none(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", None, 42, 1.5, ["a"], {"a": 1}])
    def test_blank_and_non_strings_become_none(self, value: Any) -> None:
        assert to_str_or_none(value) is None


class TestSanitizeHtml:
    def test_keeps_allowed_tags(self) -> None:
        html = "<p>A <b>bold</b> and <i>italic</i><br>line</p><ul><li>one</li></ul>"
        assert sanitize_html(html) == "<p>A <b>bold</b> and <i>italic</i><br>line</p><ul><li>one</li></ul>"

    def test_strips_disallowed_tags_keeping_text(self) -> None:
        assert sanitize_html('<div>Read <a href="https://x.test">more</a></div>') == "Read more"

    def test_drops_script_bodies(self) -> None:
        assert sanitize_html("<p>Hi</p><script>alert(1)</script>") == "<p>Hi</p>"

    def test_strips_all_attributes(self) -> None:
        assert sanitize_html('<p class="x" onclick="evil()">Text</p>') == "<p>Text</p>"


class TestValidateSeries:
    def test_keeps_well_formed_entries(self) -> None:
        result = validate_series([{"series": " Dune ", "sequence": "1"}])
        assert result == [SeriesMetadata(series="Dune", sequence="1")]

    def test_drops_malformed_entries_independently(self) -> None:
        result = validate_series(
            [
                {"series": "Dune", "sequence": 1},
                {"series": ""},
                "not a mapping",
                {"sequence": "3"},
                {"series": "Foundation", "sequence": 2.5},
            ]
        )
        assert result == [
            SeriesMetadata(series="Dune", sequence="1"),
            SeriesMetadata(series="Foundation", sequence="2.5"),
        ]

    def test_bad_sequence_keeps_entry_without_sequence(self) -> None:
        result = validate_series([{"series": "Dune", "sequence": {"n": 1}}])
        assert result == [SeriesMetadata(series="Dune", sequence=None)]

    def test_unprintable_integer_sequence_is_dropped(self) -> None:
        result = validate_series([{"series": "Dune", "sequence": 10**5000}])
        assert result == [SeriesMetadata(series="Dune", sequence=None)]

    @pytest.mark.parametrize("value", [None, "Dune", {"series": "Dune"}, [], [{"series": " "}]])
    def test_nothing_usable_returns_none(self, value: Any) -> None:
        assert validate_series(value) is None


class TestNormalizeBookMetadata:
    def test_full_record(self) -> None:
        book = normalize_book_metadata(
            {
                "title": "  Dune ",
                "subtitle": "Book One",
                "author": "Frank Herbert",
                "narrator": "Scott Brick",
                "publisher": "Macmillan Audio",
                "publishedYear": "2006",
                "description": "<p>Epic <em>desert</em> saga</p>",
                "cover": "https://covers.test/dune.jpg",
                "isbn": "9781427201430",
                "asin": "B002V1OF70",
                "genres": ["Science Fiction", " Classics "],
                "tags": ["space"],
                "series": [{"series": "Dune", "sequence": "1"}],
                "language": "English",
                "duration": 75600,
            }
        )
        assert book.title == "Dune"
        assert book.published_year == "2006"
        assert book.description == "<p>Epic <em>desert</em> saga</p>"
        assert book.genres == ["Science Fiction", "Classics"]
        assert book.series == [SeriesMetadata(series="Dune", sequence="1")]
        assert book.duration == 75600

    @pytest.mark.parametrize("data", [None, 42, "Dune", ["title"], {}])
    def test_non_mapping_or_empty_input_yields_empty_title(self, data: Any) -> None:
        assert normalize_book_metadata(data) == BookMetadata(title="")

    def test_wrong_types_degrade_per_field(self) -> None:
        book = normalize_book_metadata(
            {
                "title": 123,
                "author": ["A", "B"],
                "publishedYear": 1999,
                "genres": ["Fantasy", 7],
                "tags": "space",
                "isbn": "   ",
            }
        )
        assert book.title == ""
        assert book.author is None
        assert book.published_year is None
        assert book.genres is None
        assert book.tags is None
        assert book.isbn is None

    def test_string_lists_drop_blank_items(self) -> None:
        book = normalize_book_metadata({"title": "T", "genres": ["  ", "Horror", ""], "tags": [" "]})
        assert book.genres == ["Horror"]
        assert book.tags is None

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(3600, 3600), (12.5, 12.5), ("3600", 3600), (" 90.25 ", 90.25), (7200.0, 7200)],
    )
    def test_duration_accepts_numbers_and_numeric_strings(self, value: Any, expected: float) -> None:
        assert normalize_book_metadata({"duration": value}).duration == expected

    @pytest.mark.parametrize("value", [True, "long", "", float("inf"), float("nan"), [60]])
    def test_duration_rejects_non_numeric(self, value: Any) -> None:
        assert normalize_book_metadata({"duration": value}).duration is None

    def test_description_is_sanitized_then_trimmed(self) -> None:
        book = normalize_book_metadata({"description": "  <div><p>Hello</p></div>  "})
        assert book.description == "<p>Hello</p>"

    def test_description_empty_after_sanitizing_becomes_none(self) -> None:
        assert normalize_book_metadata({"description": "<div> </div><script>x()</script>"}).description is None

    def test_serialization_omits_none_and_uses_camel_case(self) -> None:
        book = normalize_book_metadata({"title": "Dune", "publishedYear": "1965"})
        assert book.model_dump(by_alias=True, exclude_none=True) == {"title": "Dune", "publishedYear": "1965"}

    def test_duration_too_large_for_float_becomes_none(self) -> None:
        record = json.loads('{"title": "Dune", "duration": 1' + "0" * 400 + "}")

        book = normalize_book_metadata(record)

        assert book.title == "Dune"
        assert book.duration is None

    def test_lone_surrogates_are_replaced(self) -> None:
        record = json.loads(
            '{"title": "Dune \\ud800", "description": "<p>abc \\udc00</p>", "genres": ["Sci\\ud83dFi"]}'
        )

        book = normalize_book_metadata(record)

        assert book.title == "Dune ?"
        assert book.description == "<p>abc ?</p>"
        assert book.genres == ["Sci?Fi"]
        assert json.loads(book.model_dump_json())["title"] == "Dune ?"
