"""
Extension registry and plugin tests

Tests registration rules, lookup and installing the plugin into mistune.
"""

import mistune
import pytest

from extramark.lib.context import ParseContext
from extramark.lib.extensions import ExtensionRegistry, ExtensionError
from extramark.lib.parser import Markdown, HTMLRenderer, InlineParser, markdown_make
from extramark.models.extensions import ExtensionSpec, ExtensionLevel, ExtensionPlugin


BUILTIN_NAMES = ["details", "definitionList", "abbreviationDeclaration", "inlineAbbreviation"]


def spec_make(name="custom", level=ExtensionLevel.BLOCK, pattern=r'^@@'):
    return ExtensionSpec(
        name=name,
        level=level,
        description="test extension",
        start=lambda src, context: -1,
        tokenizer=lambda src, context: None,
        renderer=lambda token, context: "",
        pattern=pattern,
    )


class TestRegistry:
    """Test registration and lookup"""

    def test_builtins_registered_in_order(self):
        assert list(ExtensionRegistry().specs) == BUILTIN_NAMES

    def test_spec_get(self):
        spec = ExtensionRegistry().spec_get("details")
        assert spec.level is ExtensionLevel.BLOCK
        assert spec.examples

    def test_spec_get_unknown(self):
        assert ExtensionRegistry().spec_get("nope") is None

    def test_list_by_level(self):
        registry = ExtensionRegistry()
        block = [spec.name for spec in registry.extensions_listByLevel(ExtensionLevel.BLOCK)]
        inline = [spec.name for spec in registry.extensions_listByLevel(ExtensionLevel.INLINE)]

        assert block == ["details", "definitionList", "abbreviationDeclaration"]
        assert inline == ["inlineAbbreviation"]

    def test_only_declaration_is_eager(self):
        eager = [spec.name for spec in ExtensionRegistry().specs.values() if spec.eager]
        assert eager == ["abbreviationDeclaration"]

    def test_register_custom(self):
        registry = ExtensionRegistry()
        registry.register(spec_make())
        assert registry.spec_get("custom") is not None

    def test_block_without_pattern_rejected(self):
        with pytest.raises(ExtensionError):
            ExtensionRegistry().register(spec_make(pattern=None))

    def test_inline_without_pattern_accepted(self):
        registry = ExtensionRegistry()
        registry.register(spec_make(level=ExtensionLevel.INLINE, pattern=None))
        assert registry.spec_get("custom").level is ExtensionLevel.INLINE

    def test_unknown_level_rejected(self):
        with pytest.raises(ExtensionError):
            ExtensionRegistry().register(spec_make(level="block"))


class TestPlugin:
    """Test the registrable bundle and its installation"""

    def test_plugin_bundle(self):
        plugin = ExtensionRegistry().plugin_make()
        assert isinstance(plugin, ExtensionPlugin)
        assert plugin.names() == BUILTIN_NAMES

    def test_install_registers_block_rules_first(self):
        md = markdown_make()
        assert md.block.rules[:3] == ["details", "definitionList", "abbreviationDeclaration"]
        assert "inlineAbbreviation" not in md.block.rules

    def test_install_reaches_nested_rule_lists(self):
        md = markdown_make()
        assert "details" in md.block.block_quote_rules
        assert "definitionList" in md.block.list_rules

    def test_install_shares_extensions(self):
        md = markdown_make()
        assert isinstance(md.inline, InlineParser)
        assert isinstance(md.renderer, HTMLRenderer)
        assert list(md.inline.extensions) == BUILTIN_NAMES
        assert list(md.renderer.extensions) == BUILTIN_NAMES

    def test_plain_mistune_rejected(self):
        plugin = ExtensionRegistry().plugin_make()
        with pytest.raises(ExtensionError):
            mistune.Markdown(plugins=[plugin])

    def test_markdown_without_session(self):
        """A bare Markdown instance creates its own context per parse"""
        md = markdown_make()
        assert md("*[HTML]: HyperText Markup Language\n\nHTML") == (
            '<p><abbr title="HyperText Markup Language">HTML</abbr></p>\n'
        )
        assert md("HTML") == "<p>HTML</p>\n"

    def test_markdown_without_session_parses_definition_lines(self):
        """Definition-list lines are inline-parsed through the Markdown instance itself"""
        md = markdown_make()
        assert md("Term *em*\n:desc **b**") == (
            "<dl><dt>Term <em>em</em></dt><dd>desc <strong>b</strong></dd></dl>\n"
        )

    def test_markdown_without_session_applies_abbreviations_in_definitions(self):
        md = markdown_make()
        html = md("*[RFC]: Request for Comments\n\nRFC\n:An RFC document")
        assert '<dt><abbr title="Request for Comments">RFC</abbr></dt>' in html

    def test_inline_render_needs_renderer(self):
        from extramark.lib.parser import MarkdownHost

        md = markdown_make(with_renderer=False)
        host = MarkdownHost(md, {'ref_links': {}})
        with pytest.raises(ExtensionError):
            host.inline_render("*em*", ParseContext(host=host))

    def test_entity_references_kept(self):
        """Raw HTML and entities pass through unescaped by default"""
        md = markdown_make()
        assert md("A &copy; <b>bold</b>") == "<p>A © <b>bold</b></p>\n"

    def test_custom_block_extension(self):
        """A registered block extension is tried by the host"""
        from extramark.lib.parser import Parser
        from extramark.models.tokens import InlineAbbreviationToken

        registry = ExtensionRegistry()

        def shout_tokenizer(src, context):
            line = src.split("\n", 1)[0]
            return InlineAbbreviationToken(raw=line, text=line[2:].strip())

        registry.register(ExtensionSpec(
            name="shout",
            level=ExtensionLevel.BLOCK,
            description="Upper-cased line",
            start=lambda src, context: 0,
            tokenizer=shout_tokenizer,
            renderer=lambda token, context: f"<p>{token.text.upper()}</p>",
            pattern=r'^@@',
        ))

        assert Parser("@@ quiet words", registry=registry).render() == "<p>QUIET WORDS</p>\n"
