"""
Parse context tests

Tests the immutable abbreviation table and the per-parse context.
"""

import pytest

from extramark.lib.context import AbbreviationTable, ParseContext


class TestAbbreviationTable:
    """Test term declaration and literal term matching"""

    def test_empty_table(self):
        table = AbbreviationTable()
        assert len(table) == 0
        assert not table
        assert table.start("anything") == -1
        assert table.match("anything") is None

    def test_declare_returns_new_table(self):
        """Declaring never mutates the original table"""
        table = AbbreviationTable()
        declared = table.declare("HTML", "HyperText Markup Language")

        assert "HTML" not in table
        assert declared.get("HTML") == "HyperText Markup Language"

    def test_declare_overwrites(self):
        table = AbbreviationTable().declare("CSS", "old").declare("CSS", "Cascading Style Sheets")
        assert table.get("CSS") == "Cascading Style Sheets"
        assert len(table) == 1

    def test_start_finds_first_occurrence(self):
        table = AbbreviationTable({"W3C": "World Wide Web Consortium"})
        assert table.start("The W3C and the W3C") == 4

    def test_match_is_anchored(self):
        """match() only succeeds at offset 0"""
        table = AbbreviationTable({"W3C": "World Wide Web Consortium"})
        assert table.match("W3C rules") == "W3C"
        assert table.match("The W3C") is None

    def test_longest_term_wins(self):
        table = AbbreviationTable({"HTML": "markup", "HTML5": "markup five"})
        assert table.match("HTML5 page") == "HTML5"
        assert table.match("HTML page") == "HTML"

    def test_metacharacters_are_literal(self):
        """Terms are escaped before joining the alternation"""
        table = AbbreviationTable({"C++": "A language", "a.b": "dotted"})
        assert table.match("C++ code") == "C++"
        assert table.match("CCC") is None
        assert table.start("axb a.b") == 4

    def test_iteration_and_dict(self):
        table = AbbreviationTable({"A": "a", "B": "b"})
        assert list(table) == ["A", "B"]
        assert table.as_dict() == {"A": "a", "B": "b"}


class TestParseContext:
    """Test context state and host fallbacks"""

    def test_fresh_contexts_are_independent(self):
        first = ParseContext()
        first.abbreviation_declare("API", "Application Programming Interface")
        second = ParseContext()

        assert "API" in first.abbreviations
        assert "API" not in second.abbreviations

    def test_snapshot_is_frozen(self):
        """Declarations after a snapshot are not visible through it"""
        context = ParseContext()
        context.abbreviation_declare("A", "first")
        snapshot = context.snapshot()
        context.abbreviation_declare("B", "second")

        assert "A" in snapshot.abbreviations
        assert "B" not in snapshot.abbreviations
        assert "B" in context.abbreviations

    def test_inline_tokenize_without_host(self):
        tokens = []
        result = ParseContext().inline_tokenize("some *text*", tokens)

        assert result is tokens
        assert tokens == [{'type': 'text', 'raw': 'some *text*'}]

    def test_inline_render_without_host(self):
        assert ParseContext().inline_render("some *text*") == "some *text*"

    def test_host_callbacks_receive_context(self):
        """With a host, inline calls are forwarded along with the context"""
        calls = []

        class RecordingHost:
            def inline_tokenize(self, text, context):
                calls.append(('tokenize', text, context))
                return [{'type': 'text', 'raw': text.upper()}]

            def inline_render(self, text, context):
                calls.append(('render', text, context))
                return f"<i>{text}</i>"

        context = ParseContext(host=RecordingHost())
        tokens = context.inline_tokenize("abc", [])

        assert tokens == [{'type': 'text', 'raw': 'ABC'}]
        assert context.inline_render("abc") == "<i>abc</i>"
        assert [call[0] for call in calls] == ['tokenize', 'render']
        assert all(call[2] is context for call in calls)
