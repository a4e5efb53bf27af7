"""
extramark - Markdown with collapsible sections, definition lists and abbreviations

Extends the mistune markdown engine with extra block and inline grammar.
"""

__version__ = "1.0.0"

from .lib import (
    Parser,
    Compiler,
    ExtensionRegistry,
    ExtensionError,
    markdown_render,
    LOG,
    state_connectToLogger,
)

__all__ = [
    "Parser",
    "Compiler",
    "ExtensionRegistry",
    "ExtensionError",
    "markdown_render",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
