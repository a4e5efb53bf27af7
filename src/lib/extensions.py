"""
Extension implementations for extramark

Each extension is a (start, tokenizer, renderer) triple registered as an
ExtensionSpec. Tokenizers decline by returning None; they never raise for
malformed markup, so the host falls back to its default handling.
"""

import re
from typing import Dict, List, Optional

from mistune import escape

from ..models.extensions import ExtensionSpec, ExtensionLevel, ExtensionPlugin
from ..models.tokens import (
    TokenType,
    Token,
    DetailsToken,
    DefinitionListToken,
    AbbreviationDeclarationToken,
    InlineAbbreviationToken,
)
from .context import ParseContext
from .scanner import tag_findMatching, attributes_parse, attributes_render


DETAILS_OPEN_TAG = '<details'
DETAILS_CLOSE_TAG = '</details>'

DETAILS_START = re.compile(r'^<details[\s>]')
DETAILS_OPEN = re.compile(r'^<details(\s+[^>]*)?>\n')
SUMMARY_LINE = re.compile(r'^<summary>(.*?)</summary>(?:\n|$)')

# A term line (not itself a description) followed by one or more ':' lines,
# repeated for as many term groups as follow each other directly
DEFINITION_LIST = re.compile(r'^(?:[^:\s][^\n]*\n(?::[^\n]*(?:\n|$))+)+')

ABBREVIATION_DECLARATION = re.compile(
    r'^\*\[(?P<abbr>[^\]\n]*[^\]\s][^\]\n]*)\]:[ \t]*(?P<definition>\S[^\n]*)'
)


class ExtensionError(Exception):
    """Raised when an extension specification cannot be registered"""
    pass


class ExtensionRegistry:
    """
    Registry of extension specifications

    Maps extension names to ExtensionSpec objects. The four built-in
    extensions are registered on construction, in the order the host should
    try them.
    """

    def __init__(self) -> None:
        """Initialize the registry and register all built-in extensions"""
        self.specs: Dict[str, ExtensionSpec] = {}
        self.detailsExtension_register()
        self.definitionListExtension_register()
        self.abbreviationExtensions_register()

    def register(self, spec: ExtensionSpec) -> None:
        """
        Register an extension specification

        Raises:
            ExtensionError: If the level is unknown, or a block extension
                            has no trigger pattern for the host to scan for
        """
        if not isinstance(spec.level, ExtensionLevel):
            raise ExtensionError(
                f"Extension '{spec.name}' has unknown level {spec.level!r}"
            )
        if spec.level is ExtensionLevel.BLOCK and not spec.pattern:
            raise ExtensionError(
                f"Block extension '{spec.name}' needs a trigger pattern"
            )
        self.specs[spec.name] = spec

    def spec_get(self, name: str) -> Optional[ExtensionSpec]:
        """Get full extension specification by name"""
        return self.specs.get(name)

    def extensions_listByLevel(self, level: ExtensionLevel) -> List[ExtensionSpec]:
        """Get all extensions of a level, in registration order"""
        return [spec for spec in self.specs.values() if spec.level == level]

    def plugin_make(self) -> ExtensionPlugin:
        """Bundle every registered extension into one registrable plugin"""
        return ExtensionPlugin(extensions=list(self.specs.values()))

    def detailsExtension_register(self) -> None:
        """Register the collapsible <details> block"""

        def details_start(src: str, context: ParseContext) -> int:
            """Cheap gate: does src open with a <details> tag?"""
            return 0 if DETAILS_START.match(src) else -1

        def details_tokenizer(src: str, context: ParseContext) -> Optional[Token]:
            """Claim a balanced <details>...</details> block at offset 0"""
            open_match = DETAILS_OPEN.match(src)
            if not open_match:
                return None

            end_index = tag_findMatching(src, DETAILS_OPEN_TAG, DETAILS_CLOSE_TAG)
            if end_index is None:
                return None

            raw = src[:end_index]
            open_tag = open_match.group(0)
            attributes = attributes_parse(open_tag)

            content = raw[len(open_tag):-len(DETAILS_CLOSE_TAG)].strip()
            summary = ''

            summary_match = SUMMARY_LINE.match(content)
            if summary_match:
                summary = summary_match.group(1).strip()
                content = content[summary_match.end():].strip()

            return DetailsToken(
                raw=raw,
                summary=summary,
                text=content,
                attributes=attributes,
            )

        def details_renderer(token: Token, context: ParseContext) -> str:
            """Emit the details element around the already rendered body"""
            match token:
                case DetailsToken():
                    attributes_string = attributes_render(token.attributes)
                    summary_html = f'<summary>{token.summary}</summary>' if token.summary else ''
                    return f"""<details {attributes_string}>
  {summary_html}
  {token.text}
  </details>"""
                case _:
                    raise TypeError(f"details renderer got {type(token).__name__}")

        self.register(ExtensionSpec(
            name=TokenType.DETAILS.value,
            level=ExtensionLevel.BLOCK,
            description='Collapsible section with optional summary',
            start=details_start,
            tokenizer=details_tokenizer,
            renderer=details_renderer,
            pattern=r'^<details(?:\s[^>]*)?>[ \t]*$',
            examples=['<details open="">\n<summary>More</summary>\nHidden *text*\n</details>'],
        ))

    def definitionListExtension_register(self) -> None:
        """Register term/description lists"""

        def definitionList_start(src: str, context: ParseContext) -> int:
            """Offset of the first description line marker"""
            return src.find('\n:')

        def definitionList_tokenizer(src: str, context: ParseContext) -> Optional[Token]:
            """Claim term lines each followed by ':' description lines"""
            match = DEFINITION_LIST.match(src)
            if not match:
                return None

            raw = match.group(0)
            token = DefinitionListToken(raw=raw, text=raw.strip())
            context.inline_tokenize(token.text, token.tokens)
            return token

        def definitionList_renderer(token: Token, context: ParseContext) -> str:
            """
            Re-walk the source lines in order

            Consecutive ':' lines share one <dd>; their inline content is
            concatenated with no separator. Every other line is a <dt>.
            """
            match token:
                case DefinitionListToken():
                    pass
                case _:
                    raise TypeError(f"definition list renderer got {type(token).__name__}")

            html = '<dl>'
            in_dd = False
            for line in token.text.split('\n'):
                if line.startswith(':'):
                    if not in_dd:
                        html += '<dd>'
                        in_dd = True
                    html += context.inline_render(line[1:].strip())
                else:
                    if in_dd:
                        html += '</dd>'
                        in_dd = False
                    html += f'<dt>{context.inline_render(line.strip())}</dt>'
            if in_dd:
                html += '</dd>'
            html += '</dl>'
            return html

        self.register(ExtensionSpec(
            name=TokenType.DEFINITION_LIST.value,
            level=ExtensionLevel.BLOCK,
            description='Definition list: a term line followed by ":" description lines',
            start=definitionList_start,
            tokenizer=definitionList_tokenizer,
            renderer=definitionList_renderer,
            pattern=r'^(?=[^:\s][^\n]*\n:)',
            examples=['Apple\n:A fruit\n:Grows on trees'],
        ))

    def abbreviationExtensions_register(self) -> None:
        """Register the abbreviation declaration/use pair"""

        def declaration_start(src: str, context: ParseContext) -> int:
            return src.find('*[')

        def declaration_tokenizer(src: str, context: ParseContext) -> Optional[Token]:
            """Claim one '*[TERM]: DEFINITION' line"""
            match = ABBREVIATION_DECLARATION.match(src)
            if not match:
                return None
            return AbbreviationDeclarationToken(
                raw=match.group(0),
                abbr=match.group('abbr'),
                definition=match.group('definition').rstrip(),
            )

        def declaration_renderer(token: Token, context: ParseContext) -> str:
            """Record the declaration in the context; renders nothing"""
            match token:
                case AbbreviationDeclarationToken():
                    context.abbreviation_declare(token.abbr, token.definition)
                    return ''
                case _:
                    raise TypeError(f"declaration renderer got {type(token).__name__}")

        def inline_start(src: str, context: ParseContext) -> int:
            """Offset of the first declared term in src, -1 if none"""
            if not context.abbreviations:
                return -1
            return context.abbreviations.start(src)

        def inline_tokenizer(src: str, context: ParseContext) -> Optional[Token]:
            """Claim a declared term beginning exactly at offset 0"""
            if not context.abbreviations:
                return None
            term = context.abbreviations.match(src)
            if term is None:
                return None
            return InlineAbbreviationToken(raw=term, text=term)

        def inline_renderer(token: Token, context: ParseContext) -> str:
            match token:
                case InlineAbbreviationToken():
                    definition = context.abbreviations.get(token.text)
                    if definition is None:
                        return token.text
                    return f'<abbr title="{escape(definition)}">{escape(token.text, quote=False)}</abbr>'
                case _:
                    raise TypeError(f"inline abbreviation renderer got {type(token).__name__}")

        self.register(ExtensionSpec(
            name=TokenType.ABBREVIATION_DECLARATION.value,
            level=ExtensionLevel.BLOCK,
            description='Abbreviation declaration line, invisible in output',
            start=declaration_start,
            tokenizer=declaration_tokenizer,
            renderer=declaration_renderer,
            pattern=r'^\*\[[^\]\n]+\]:',
            eager=True,
            examples=['*[HTML]: HyperText Markup Language'],
        ))

        self.register(ExtensionSpec(
            name=TokenType.INLINE_ABBREVIATION.value,
            level=ExtensionLevel.INLINE,
            description='Wraps previously declared terms in <abbr>',
            start=inline_start,
            tokenizer=inline_tokenizer,
            renderer=inline_renderer,
            examples=['*[W3C]: World Wide Web Consortium\n\nThe W3C publishes it.'],
        ))
