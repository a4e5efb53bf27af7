"""
Parser: binds the grammar extensions into mistune

mistune owns control flow. It scans block rules at line starts, recurses into
inline text and walks the resulting tokens to HTML. This module plugs the
extension triples into each of those stages:

- Block adapter: every block extension contributes a line-anchored trigger
  that is tried ahead of mistune's built-in rules. At a trigger the adapter
  runs the extension's start detector and tokenizer; a declined position is
  handed back to the built-in rules.
- InlineParser: runs inline extensions over plain text runs.
- Markdown: walks block tokens in source order. Eager extensions (the
  abbreviation declaration) render during this walk, and every extension
  token gets a snapshot of the parse context at its own position.
- HTMLRenderer: routes extension tokens to their renderers and highlights
  fenced code with pygments.

Example:
    >>> parser = Parser("*[HTML]: HyperText Markup Language\\n\\nHTML rocks")
    >>> parser.render()
    '<p><abbr title="HyperText Markup Language">HTML</abbr> rocks</p>\\n'
"""

import re
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Match, MutableMapping, Optional, Tuple

import mistune
from mistune import BlockState, InlineState

from ..config import appsettings
from ..models.extensions import ExtensionSpec, ExtensionLevel, ExtensionPlugin
from ..models.tokens import Token, DetailsToken, DefinitionListToken
from .context import ParseContext
from .log import LOG


# Block extension triggers are inserted ahead of this built-in rule, which
# leads mistune's default rule order
FIRST_DEFAULT_RULE = 'fenced_code'

BLANK_REMAINDER = re.compile(r'[ \t]*(?:\n|$)')


def context_get(env: MutableMapping[str, Any]) -> ParseContext:
    """Fetch the parse context from a mistune env, creating an empty one if absent"""
    context = env.get(appsettings.context_key)
    if context is None:
        context = ParseContext()
        env[appsettings.context_key] = context
    return context


def blockRule_make(spec: ExtensionSpec, extension_rules: List[str]) -> Any:
    """
    Build the mistune block rule function for one block extension

    Args:
        spec: Block extension to adapt
        extension_rules: Names of every installed block extension; these are
                         skipped when a declined position is handed back to
                         the built-in rules

    Returns:
        Function (block, match, state) -> new cursor, or None to decline
    """

    def rules_fallback(block: mistune.BlockParser, position: int, state: BlockState) -> Optional[int]:
        """Give the position to the first built-in rule that matches there"""
        rules = [name for name in block.rules if name not in extension_rules]
        match = block.compile_sc(rules).match(state.src, position)
        if match is None:
            return None
        return block.parse_method(match, state)

    def block_parse(block: mistune.BlockParser, m: Match[str], state: BlockState) -> Optional[int]:
        position = m.start()
        src = state.src[position:]
        context = context_get(state.env)

        token: Optional[Token] = None
        if spec.start(src, context) >= 0:
            token = spec.tokenizer(src, context)
        if token is None:
            LOG(f"{spec.name} declined at offset {position}", level=3)
            return rules_fallback(block, position, state)

        end = position + len(token.raw)
        blank = BLANK_REMAINDER.match(state.src, end)
        if blank:
            end = blank.end()

        match token:
            case DetailsToken():
                child = state.child_state(token.text + '\n')
                block.parse(child)
                state.append_token({
                    'type': spec.name,
                    'children': child.tokens,
                    'attrs': {'token': token},
                })
            case _:
                state.append_token({'type': spec.name, 'attrs': {'token': token}})

        LOG(f"{spec.name} claimed {len(token.raw)} characters at offset {position}", level=3)
        return end

    return block_parse


def plugin_install(plugin: ExtensionPlugin, md: "Markdown") -> None:
    """
    Install every extension of a plugin into a Markdown instance

    Block extensions get a trigger rule in ``md.block``; all extensions are
    made known to the walk, the inline parser and the renderer.

    Raises:
        ExtensionError: If md is not an extramark Markdown
    """
    if not isinstance(md, Markdown):
        from .extensions import ExtensionError
        raise ExtensionError(
            f"Extensions install into extramark's Markdown, got {type(md).__name__}"
        )

    block_names = [spec.name for spec in plugin.extensions if spec.level is ExtensionLevel.BLOCK]
    for spec in plugin.extensions:
        md.extensions[spec.name] = spec
        if spec.level is ExtensionLevel.BLOCK:
            md.block.register(
                spec.name,
                spec.pattern,
                blockRule_make(spec, block_names),
                before=FIRST_DEFAULT_RULE,
            )
            # Block quotes and list items parse with their own rule lists
            for rules in (md.block.block_quote_rules, md.block.list_rules):
                if spec.name not in rules:
                    md.block.insert_rule(rules, spec.name, before=FIRST_DEFAULT_RULE)

    if isinstance(md.inline, InlineParser):
        md.inline.extensions.update(md.extensions)
    if isinstance(md.renderer, HTMLRenderer):
        md.renderer.extensions.update(md.extensions)

    LOG(f"Installed extensions: {', '.join(plugin.names())}", level=3)


class InlineParser(mistune.InlineParser):
    """
    mistune inline parser that also runs inline extensions over text runs

    mistune hands plain text to process_text in fragments; a fragment that
    directly continues the previous text token is re-joined with it before
    scanning, so a term split across fragments is still found.
    """

    def __init__(self, hard_wrap: bool = False) -> None:
        super().__init__(hard_wrap=hard_wrap)
        self.extensions: Dict[str, ExtensionSpec] = {}

    def inlineExtensions_get(self) -> List[ExtensionSpec]:
        return [spec for spec in self.extensions.values() if spec.level is ExtensionLevel.INLINE]

    def candidates_scan(
        self, text: str, context: ParseContext, specs: List[ExtensionSpec]
    ) -> Iterable[Tuple[int, ExtensionSpec, Token]]:
        """
        Find the spans of text claimed by inline extensions, left to right

        At each step every extension reports its earliest candidate offset;
        the extensions at the nearest offset try their anchored tokenizer in
        registration order. If all decline, scanning resumes one character on.

        Yields:
            (offset, spec, token) for each claimed span
        """
        position = 0
        while position < len(text):
            remaining = text[position:]
            offsets = [(spec.start(remaining, context), spec) for spec in specs]
            offsets = [(offset, spec) for offset, spec in offsets if offset >= 0]
            if not offsets:
                return

            nearest = min(offset for offset, _ in offsets)
            claimed: Optional[Tuple[ExtensionSpec, Token]] = None
            for offset, spec in offsets:
                if offset != nearest:
                    continue
                token = spec.tokenizer(remaining[nearest:], context)
                if token is not None:
                    claimed = (spec, token)
                    break

            if claimed is None:
                position += nearest + 1
                continue

            spec, token = claimed
            yield position + nearest, spec, token
            position += nearest + len(token.raw)

    def process_text(self, text: str, state: InlineState, parse_emphasis: bool = True) -> None:
        specs = self.inlineExtensions_get()
        context = state.env.get(appsettings.context_key)
        if not specs or context is None:
            return super().process_text(text, state, parse_emphasis)

        if state.tokens:
            last = state.tokens[-1]
            if last['type'] == 'text' and last.get('_emphasis', True) == parse_emphasis:
                state.tokens.pop()
                text = last['raw'] + text

        position = 0
        for offset, spec, token in self.candidates_scan(text, context, specs):
            if offset > position:
                super().process_text(text[position:offset], state, parse_emphasis)
            state.append_token({
                'type': spec.name,
                'raw': token.raw,
                'attrs': {'token': token, 'context': context.snapshot()},
            })
            position = offset + len(token.raw)

        if position < len(text):
            super().process_text(text[position:], state, parse_emphasis)


class HTMLRenderer(mistune.HTMLRenderer):
    """
    mistune HTML renderer that also renders extension tokens

    Block extension output is followed by a newline, like mistune's own
    block elements. Eager extensions already rendered during the walk; their
    stored output is emitted as is.
    """

    def __init__(
        self,
        escape: bool = True,
        highlight_code: bool = True,
        pygments_style: str = "default",
    ) -> None:
        super().__init__(escape=escape)
        self.extensions: Dict[str, ExtensionSpec] = {}
        self.highlight_code = highlight_code
        self.pygments_style = pygments_style

    def render_token(self, token: Dict[str, Any], state: BlockState) -> str:
        spec = self.extensions.get(token['type'])
        if spec is None:
            return super().render_token(token, state)

        attrs = token['attrs']
        if 'html' in attrs:
            html = attrs['html']
        else:
            extension_token = attrs['token']
            if 'children' in token:
                body = self.render_tokens(token['children'], state).strip()
                extension_token = replace(extension_token, text=body)
            html = spec.renderer(extension_token, attrs['context'])

        if spec.level is ExtensionLevel.BLOCK and html:
            html += '\n'
        return html

    def block_code(self, code: str, info: Optional[str] = None) -> str:
        """
        Render a fenced or indented code block

        With highlighting on, the first word of the info string selects the
        pygments lexer; unknown or missing languages fall back to plain text.
        """
        if not self.highlight_code:
            return super().block_code(code, info)

        from pygments import highlight
        from pygments.lexers import get_lexer_by_name, TextLexer
        from pygments.lexer import Lexer
        from pygments.formatters import HtmlFormatter
        from pygments.util import ClassNotFound

        language = info.split(None, 1)[0] if info and info.strip() else 'text'

        lexer: Lexer
        try:
            lexer = get_lexer_by_name(language)
        except ClassNotFound:
            LOG(f"No pygments lexer for '{language}', using plain text", level=3)
            lexer = TextLexer()

        formatter = HtmlFormatter(style=self.pygments_style, noclasses=True)
        return highlight(code, lexer, formatter)


class MarkdownHost:
    """
    Inline callbacks served by one Markdown instance over one parse env

    Nested inline text is tokenized by the instance's inline parser and
    rendered by its renderer, with the given context standing in for the
    parse-wide one.
    """

    def __init__(self, markdown: "Markdown", env: MutableMapping[str, Any]) -> None:
        self.markdown = markdown
        self.env = env

    def env_make(self, context: ParseContext) -> Dict[str, Any]:
        return {**self.env, appsettings.context_key: context}

    def inline_tokenize(self, text: str, context: ParseContext) -> List[Dict[str, Any]]:
        return self.markdown.inline(text, self.env_make(context))

    def inline_render(self, text: str, context: ParseContext) -> str:
        """
        Render one piece of inline markdown as it reads at the context's position

        Raises:
            ExtensionError: If the Markdown instance has no renderer
        """
        renderer = self.markdown.renderer
        if renderer is None:
            from .extensions import ExtensionError
            raise ExtensionError("Inline rendering needs a Markdown instance with a renderer")

        state = BlockState()
        state.env = self.env_make(context)
        tokens = self.markdown.inline(text, state.env)
        return renderer.render_tokens(tokens, state)


class Markdown(mistune.Markdown):
    """
    mistune Markdown with a source-ordered token walk

    mistune inline-parses text lazily while rendering. Here the walk runs to
    completion first: block tokens are visited in source order, eager
    extensions render as they are passed, and each extension token records
    the parse context as of its position. Output rendering afterwards can
    therefore never see an abbreviation declared later in the source.
    """

    def __init__(
        self,
        renderer: Optional[mistune.BaseRenderer] = None,
        block: Optional[mistune.BlockParser] = None,
        inline: Optional[mistune.InlineParser] = None,
        plugins: Optional[Iterable[Any]] = None,
    ) -> None:
        self.extensions: Dict[str, ExtensionSpec] = {}
        super().__init__(renderer=renderer, block=block, inline=inline, plugins=plugins)

    def parse(self, s: str, state: Optional[BlockState] = None) -> Tuple[Any, BlockState]:
        """Parse s, giving the run a fresh context hosted by this instance unless one is set"""
        if state is None:
            state = self.block.state_cls()
        if state.env.get(appsettings.context_key) is None:
            state.env[appsettings.context_key] = ParseContext(host=MarkdownHost(self, state.env))
        return super().parse(s, state)

    def render_state(self, state: BlockState) -> Any:
        tokens = self.tokens_walk(state.tokens, state)
        if self.renderer:
            return self.renderer(tokens, state)
        return tokens

    def tokens_walk(self, tokens: List[Dict[str, Any]], state: BlockState) -> List[Dict[str, Any]]:
        """Inline-parse and annotate a token list, depth first in source order"""
        context = context_get(state.env)
        walked = []
        for token in tokens:
            spec = self.extensions.get(token['type'])
            if spec is not None:
                attrs = token['attrs']
                if spec.eager:
                    attrs['html'] = spec.renderer(attrs['token'], context)
                attrs['context'] = context.snapshot()
                match attrs['token']:
                    case DefinitionListToken(text=list_text):
                        # Block tokenizing ran before any declaration was walked
                        attrs['token'] = replace(
                            attrs['token'], tokens=attrs['context'].inline_tokenize(list_text, [])
                        )

            if 'children' in token:
                token['children'] = self.tokens_walk(token['children'], state)
            elif 'text' in token:
                text = token.pop('text')
                token['children'] = self.inline(text.strip(' \r\n\t\f'), state.env)
            walked.append(token)
        return walked


def markdown_make(
    plugin: Optional[ExtensionPlugin] = None,
    with_renderer: bool = True,
) -> Markdown:
    """
    Build a Markdown instance with the extension plugin installed

    Args:
        plugin: Extensions to install (default: all built-in extensions)
        with_renderer: Attach an HTMLRenderer; without one, parsing returns
                       the token list

    Returns:
        Configured Markdown instance
    """
    if plugin is None:
        from .extensions import ExtensionRegistry
        plugin = ExtensionRegistry().plugin_make()

    renderer = None
    if with_renderer:
        renderer = HTMLRenderer(
            escape=appsettings.escape_html,
            highlight_code=appsettings.highlight_code,
            pygments_style=appsettings.pygments_style,
        )
    inline = InlineParser(hard_wrap=appsettings.hard_wrap)
    return Markdown(renderer=renderer, inline=inline, plugins=[plugin])


class Parser:
    """
    One parse session over a markdown source

    Every parse() or render() call starts from a fresh, empty ParseContext,
    so abbreviations never leak between runs or documents. The session is
    also the context's host: block extensions reach nested inline parsing
    and rendering through inline_tokenize() and inline_render().
    """

    def __init__(self, source: str, registry: Any = None, debug: bool = False) -> None:
        """
        Initialize parser with source text

        Args:
            source: Markdown source text
            registry: Optional ExtensionRegistry (default: built-in extensions)
            debug: Log each parse run at normal verbosity

        Attributes:
            context: ParseContext of the most recent run
            env: mistune env mapping of the most recent run
        """
        self.source = source
        self.debug = debug or appsettings.debug_mode

        if registry is None:
            from .extensions import ExtensionRegistry
            registry = ExtensionRegistry()
        self.registry = registry

        self.markdown = markdown_make(registry.plugin_make(), with_renderer=True)
        self.context = ParseContext(host=self)
        self.env: MutableMapping[str, Any] = {'ref_links': {}}

    def run(self, markdown: Markdown) -> Any:
        """Run markdown over the source with a freshly initialized context"""
        self.context = ParseContext(host=self)
        state = BlockState()
        state.env[appsettings.context_key] = self.context
        self.env = state.env

        LOG(f"Parsing {len(self.source)} characters", level=1 if self.debug else 3)
        result, _ = markdown.parse(self.source, state)
        LOG(f"Declared abbreviations: {len(self.context.abbreviations)}", level=3)
        return result

    def parse(self) -> List[Dict[str, Any]]:
        """
        Parse the source to mistune's token list (AST mode)

        Extension tokens carry their typed token under ``attrs['token']``.
        """
        markdown = markdown_make(self.registry.plugin_make(), with_renderer=False)
        return self.run(markdown)

    def render(self) -> str:
        """Render the source to an HTML fragment"""
        return self.run(self.markdown)

    def inline_tokenize(self, text: str, context: ParseContext) -> List[Dict[str, Any]]:
        return MarkdownHost(self.markdown, self.env).inline_tokenize(text, context)

    def inline_render(self, text: str, context: ParseContext) -> str:
        """Render one piece of inline markdown as it reads at the context's position"""
        return MarkdownHost(self.markdown, self.env).inline_render(text, context)


def markdown_render(source: str) -> str:
    """Render markdown source to HTML with all built-in extensions"""
    return Parser(source).render()
