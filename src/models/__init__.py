"""
Models package for extramark

Contains data structures and type definitions for the extension pipeline.
"""

from .state import ProgramState, pipeline
from .extensions import ExtensionSpec, ExtensionLevel, ExtensionPlugin
from .tokens import (
    TokenType,
    Token,
    DetailsToken,
    DefinitionListToken,
    AbbreviationDeclarationToken,
    InlineAbbreviationToken,
)

__all__ = [
    "ProgramState",
    "pipeline",
    "ExtensionSpec",
    "ExtensionLevel",
    "ExtensionPlugin",
    "TokenType",
    "Token",
    "DetailsToken",
    "DefinitionListToken",
    "AbbreviationDeclarationToken",
    "InlineAbbreviationToken",
]
