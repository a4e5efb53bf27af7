"""
Extension specification and metadata models

Defines the (start-detector, tokenizer, renderer) triple each grammar
extension provides, and the plugin bundle handed to the host engine.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, TYPE_CHECKING

from .tokens import Token

if TYPE_CHECKING:
    from ..lib.context import ParseContext


class ExtensionLevel(Enum):
    """
    Level at which an extension is consulted by the host

    BLOCK extensions are tried at line starts before paragraph defaults;
    INLINE extensions are tried while scanning the text of a block.
    """
    BLOCK = "block"
    INLINE = "inline"


StartDetector = Callable[[str, "ParseContext"], int]
Tokenizer = Callable[[str, "ParseContext"], Optional[Token]]
Renderer = Callable[[Token, "ParseContext"], str]


@dataclass
class ExtensionSpec:
    """
    Specification for a grammar extension

    Attributes:
        name: Extension name, equal to the type of token it produces
        level: BLOCK or INLINE
        description: Human-readable description
        start: (remaining_source, context) -> offset of the earliest
               candidate, or -1 when the extension cannot apply
        tokenizer: (remaining_source, context) -> token anchored at offset 0,
                   or None to decline
        renderer: (token, context) -> HTML
        pattern: Line-anchored trigger regex the host scans for (block only)
        eager: Render during the source-order token walk instead of at output
               time. Used by extensions whose renderer feeds the context.
        examples: Example source strings
    """
    name: str
    level: ExtensionLevel
    description: str
    start: StartDetector
    tokenizer: Tokenizer
    renderer: Renderer
    pattern: Optional[str] = None
    eager: bool = False
    examples: List[str] = field(default_factory=list)


@dataclass
class ExtensionPlugin:
    """
    Registrable bundle of extensions

    Callable as a mistune plugin: ``plugin(md)`` installs the block triggers
    of every bundled extension into ``md.block``.
    """
    extensions: List[ExtensionSpec]

    def __call__(self, md: Any) -> None:
        from ..lib.parser import plugin_install
        plugin_install(self, md)

    def names(self) -> List[str]:
        return [spec.name for spec in self.extensions]
