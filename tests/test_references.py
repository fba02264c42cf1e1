"""Unit tests for reference parsing and expansion."""

import pytest

from noters.models import Note
from noters.references import (
    expand_references,
    extract_references,
    parse_reference,
    placeholder,
    quote_note,
)


class TestParseReference:
    """Test cases for parse_reference()."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("[[0]]", 0),
            ("[[42]]", 42),
            ("[[65535]]", 65535),
            ("[[007]]", 7),
            ("[[+1]]", 1),
        ],
    )
    def test_well_formed(self, token, expected):
        """Test well-formed tokens parse to their ID."""
        assert parse_reference(token) == expected

    @pytest.mark.parametrize(
        "token",
        [
            "[[]]",
            "[[abc]]",
            "[[-1]]",
            "[[65536]]",
            "[[1.5]]",
            "[[1]",
            "[1]]",
            "x[[1]]",
            "[[1]]x",
            "[[1]]]",
            "[[[1]]",
            "[[]",
        ],
    )
    def test_malformed(self, token):
        """Test malformed or out-of-range tokens are not references."""
        assert parse_reference(token) is None


class TestExtractReferences:
    """Test cases for extract_references()."""

    def test_no_references(self):
        """Test plain text yields nothing."""
        assert extract_references("just some words") == []

    def test_keeps_order_and_duplicates(self):
        """Test IDs come back in order of appearance, duplicates kept."""
        assert extract_references("[[3]] then [[1]] and [[3]] again") == [3, 1, 3]

    def test_splits_on_any_whitespace(self):
        """Test references separated by newlines and tabs are found."""
        assert extract_references("[[1]]\n[[2]]\t[[3]]") == [1, 2, 3]

    def test_ignores_references_glued_to_text(self):
        """Test a reference must be a whole token."""
        assert extract_references("see[[1]] [[2]], [[3]].") == []

    def test_ignores_out_of_range_ids(self):
        """Test IDs that don't fit the note ID type are skipped."""
        assert extract_references("[[65536]] [[99999999999]] [[4]]") == [4]


class TestQuoteNote:
    """Test cases for quote_note()."""

    def test_single_line(self):
        """Test a single-line note renders as header, blank quote, content."""
        note = Note(id=3, owner="alice", name="Foo", content="Bar")
        assert quote_note(note) == ">>> #3 Foo\n>\n> Bar"

    def test_multi_line(self):
        """Test every content line is quoted."""
        note = Note(id=12, owner="alice", name="List", content="a\nb\n\nc")
        assert quote_note(note) == ">>> #12 List\n>\n> a\n> b\n> \n> c"


class TestExpandReferences:
    """Test cases for expand_references()."""

    def test_placeholder(self):
        """Test placeholder() builds the reference token."""
        assert placeholder(17) == "[[17]]"

    def test_no_expansions(self):
        """Test text comes back unchanged with nothing to expand."""
        assert expand_references("see [[1]]", {}) == "see [[1]]"

    def test_replaces_every_occurrence(self):
        """Test each occurrence of a placeholder is replaced."""
        assert expand_references("[[1]] [[2]] [[1]]", {1: "one", 2: "two"}) == (
            "one two one"
        )

    def test_single_pass(self):
        """Test placeholders produced by an expansion are not expanded."""
        expanded = expand_references("[[1]] [[2]]", {1: "[[2]]", 2: "two"})
        assert expanded == "[[2]] two"

    def test_prefix_ids_do_not_clash(self):
        """Test [[1]] does not match inside [[12]]."""
        assert expand_references("[[12]] [[1]]", {1: "one", 12: "twelve"}) == (
            "twelve one"
        )

    def test_unknown_placeholders_are_left(self):
        """Test placeholders without an expansion are kept as they are."""
        assert expand_references("[[1]] [[5]]", {1: "one"}) == "one [[5]]"
