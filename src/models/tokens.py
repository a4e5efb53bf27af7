"""
Token models produced by the grammar extensions

Each extension tokenizer returns one of the dataclasses below. The set is
closed: renderers dispatch on the concrete class, so a renderer can only ever
read the fields its own token kind carries.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Union


class TokenType(Enum):
    """
    Token kinds produced by the extensions

    The values double as extension names and as the ``type`` key of the
    engine-level token dicts that carry these tokens through the host.
    """
    DETAILS = "details"
    DEFINITION_LIST = "definitionList"
    ABBREVIATION_DECLARATION = "abbreviationDeclaration"
    INLINE_ABBREVIATION = "inlineAbbreviation"


@dataclass
class DetailsToken:
    """
    Collapsible ``<details>`` section

    Attributes:
        raw: Exact consumed source, from ``<details`` through ``</details>``
        summary: Trimmed ``<summary>`` text, empty when absent
        text: Inner body. Raw markdown after tokenizing; already rendered
              HTML by the time the renderer sees the token
        attributes: ``key="value"`` pairs of the opening tag, in source order

    Example:
        For source '<details open="">\\n<summary>More</summary>\\nBody\\n</details>':
        DetailsToken(raw=..., summary="More", text="Body", attributes={"open": ""})
    """
    raw: str
    summary: str
    text: str
    attributes: Dict[str, str] = field(default_factory=dict)

    type: ClassVar[TokenType] = TokenType.DETAILS


@dataclass
class DefinitionListToken:
    """
    Term/description list

    Attributes:
        raw: Exact consumed source lines
        text: Trimmed raw block
        tokens: Inline tokens of ``text``. Filled while tokenizing, then
                re-filled during the ordered walk with the abbreviations
                declared above the list. The renderer re-derives the list
                structure from ``text``.
    """
    raw: str
    text: str
    tokens: List[Dict[str, Any]] = field(default_factory=list)

    type: ClassVar[TokenType] = TokenType.DEFINITION_LIST


@dataclass
class AbbreviationDeclarationToken:
    """A ``*[TERM]: DEFINITION`` line"""
    raw: str
    abbr: str
    definition: str

    type: ClassVar[TokenType] = TokenType.ABBREVIATION_DECLARATION


@dataclass
class InlineAbbreviationToken:
    """An occurrence of a previously declared term inside inline text"""
    raw: str
    text: str

    type: ClassVar[TokenType] = TokenType.INLINE_ABBREVIATION


Token = Union[
    DetailsToken,
    DefinitionListToken,
    AbbreviationDeclarationToken,
    InlineAbbreviationToken,
]
