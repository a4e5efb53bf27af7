"""
Abbreviation extension tests

Tests declarations, inline uses and declare-before-use ordering.
"""

import pytest

from extramark.lib.context import ParseContext
from extramark.lib.extensions import ExtensionRegistry
from extramark.lib.parser import Parser
from extramark.models.tokens import AbbreviationDeclarationToken, InlineAbbreviationToken


HTML_TITLE = 'title="HyperText Markup Language"'


@pytest.fixture
def registry():
    return ExtensionRegistry()


@pytest.fixture
def declaration(registry):
    return registry.spec_get("abbreviationDeclaration")


@pytest.fixture
def inline(registry):
    return registry.spec_get("inlineAbbreviation")


class TestDeclaration:
    """Test the *[TERM]: DEFINITION line"""

    def test_start(self, declaration):
        assert declaration.start("text *[A]: b", ParseContext()) == 5
        assert declaration.start("no declaration", ParseContext()) == -1

    def test_tokenize(self, declaration):
        token = declaration.tokenizer("*[HTML]: HyperText Markup Language\nnext", ParseContext())

        assert isinstance(token, AbbreviationDeclarationToken)
        assert token.raw == "*[HTML]: HyperText Markup Language"
        assert token.abbr == "HTML"
        assert token.definition == "HyperText Markup Language"

    def test_definition_trailing_space_trimmed(self, declaration):
        token = declaration.tokenizer("*[W3C]:   World Wide Web Consortium   \n", ParseContext())
        assert token.definition == "World Wide Web Consortium"

    def test_term_with_spaces(self, declaration):
        token = declaration.tokenizer("*[Mr. T]: A person", ParseContext())
        assert token.abbr == "Mr. T"

    def test_decline_without_definition(self, declaration):
        assert declaration.tokenizer("*[HTML]:\n", ParseContext()) is None

    def test_decline_blank_term(self, declaration):
        assert declaration.tokenizer("*[ ]: sp\n", ParseContext()) is None
        assert declaration.tokenizer("*[\t]: tab\n", ParseContext()) is None

    def test_blank_term_is_not_declared(self):
        html = Parser("*[ ]: sp\n\na b").render()
        assert "<abbr" not in html
        assert "<p>a b</p>" in html

    def test_decline_not_at_start(self, declaration):
        assert declaration.tokenizer(" *[HTML]: x", ParseContext()) is None

    def test_render_records_and_is_invisible(self, declaration):
        context = ParseContext()
        token = AbbreviationDeclarationToken(raw="", abbr="CSS", definition="Cascading Style Sheets")

        assert declaration.renderer(token, context) == ""
        assert context.abbreviations.get("CSS") == "Cascading Style Sheets"

    def test_render_side_effect_is_idempotent(self, declaration):
        context = ParseContext()
        token = AbbreviationDeclarationToken(raw="", abbr="CSS", definition="Cascading Style Sheets")
        declaration.renderer(token, context)
        declaration.renderer(token, context)

        assert context.abbreviations.as_dict() == {"CSS": "Cascading Style Sheets"}


class TestInlineAbbreviation:
    """Test start, anchored tokenizer and renderer with a prepared context"""

    @pytest.fixture
    def context(self):
        context = ParseContext()
        context.abbreviation_declare("HTML", "HyperText Markup Language")
        return context

    def test_start_with_empty_table(self, inline):
        assert inline.start("HTML everywhere", ParseContext()) == -1

    def test_start_finds_term(self, inline, context):
        assert inline.start("Write HTML", context) == 6

    def test_tokenizer_anchored(self, inline, context):
        token = inline.tokenizer("HTML is fun", context)
        assert isinstance(token, InlineAbbreviationToken)
        assert token.raw == "HTML"
        assert token.text == "HTML"

        assert inline.tokenizer("Write HTML", context) is None

    def test_tokenizer_empty_table(self, inline):
        assert inline.tokenizer("HTML", ParseContext()) is None

    def test_render(self, inline, context):
        html = inline.renderer(InlineAbbreviationToken(raw="HTML", text="HTML"), context)
        assert html == f'<abbr {HTML_TITLE}>HTML</abbr>'

    def test_render_unknown_term_passes_through(self, inline):
        html = inline.renderer(InlineAbbreviationToken(raw="XYZ", text="XYZ"), ParseContext())
        assert html == "XYZ"

    def test_render_escapes_definition(self, inline):
        context = ParseContext()
        context.abbreviation_declare("Q", 'say "hi" & <go>')
        html = inline.renderer(InlineAbbreviationToken(raw="Q", text="Q"), context)
        assert html == '<abbr title="say &quot;hi&quot; &amp; &lt;go&gt;">Q</abbr>'


class TestAbbreviationRendering:
    """Test abbreviations rendered through the parser"""

    def test_declared_term_wrapped(self):
        html = Parser("*[HTML]: HyperText Markup Language\n\nHTML rocks").render()
        assert html == f'<p><abbr {HTML_TITLE}>HTML</abbr> rocks</p>\n'

    def test_declaration_renders_nothing(self):
        assert Parser("*[HTML]: HyperText Markup Language").render() == ""

    def test_use_before_declaration_not_wrapped(self):
        """A declaration only applies to text after it"""
        source = "HTML\n*[HTML]: HyperText Markup Language\nHTML again"
        html = Parser(source).render()

        assert html == f'<p>HTML</p>\n<p><abbr {HTML_TITLE}>HTML</abbr> again</p>\n'

    def test_every_occurrence_wrapped(self):
        html = Parser("*[W3C]: World Wide Web Consortium\n\nThe W3C and the W3C").render()
        assert html.count('<abbr title="World Wide Web Consortium">W3C</abbr>') == 2

    def test_longest_term_preferred(self):
        source = "*[HTML]: Markup\n*[HTML5]: Markup five\n\nHTML5 and HTML"
        html = Parser(source).render()
        assert html == '<p><abbr title="Markup five">HTML5</abbr> and <abbr title="Markup">HTML</abbr></p>\n'

    def test_metacharacters_in_term(self):
        html = Parser("*[C++]: A language\n\nI like C++ a lot.").render()
        assert html == '<p>I like <abbr title="A language">C++</abbr> a lot.</p>\n'

    def test_later_declaration_overwrites(self):
        source = "*[X]: first\n\nX\n\n*[X]: second\n\nX"
        html = Parser(source).render()
        assert html == '<p><abbr title="first">X</abbr></p>\n<p><abbr title="second">X</abbr></p>\n'

    def test_code_span_untouched(self):
        html = Parser("*[HTML]: HyperText Markup Language\n\n`HTML` and HTML").render()
        assert html == f'<p><code>HTML</code> and <abbr {HTML_TITLE}>HTML</abbr></p>\n'

    def test_no_leak_between_parses(self):
        """Every parse starts with an empty table"""
        Parser("*[HTML]: HyperText Markup Language\n\nHTML").render()
        assert Parser("HTML").render() == "<p>HTML</p>\n"

    def test_same_parser_renders_twice_identically(self):
        parser = Parser("HTML\n\n*[HTML]: HyperText Markup Language\n\nHTML")
        assert parser.render() == parser.render()

    def test_ast_declaration_token(self):
        tokens = Parser("*[HTML]: HyperText Markup Language").parse()

        assert len(tokens) == 1
        assert tokens[0]['type'] == 'abbreviationDeclaration'
        token = tokens[0]['attrs']['token']
        assert (token.abbr, token.definition) == ("HTML", "HyperText Markup Language")
