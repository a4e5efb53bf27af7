"""
extramark library: extensions, mistune binding, compiler and logging
"""

__version__ = "1.0.0"

from .parser import Parser, markdown_render
from .compiler import Compiler
from .extensions import ExtensionRegistry, ExtensionError
from .log import LOG, state_connectToLogger, document_contextualize

__all__ = [
    "Parser",
    "Compiler",
    "ExtensionRegistry",
    "ExtensionError",
    "markdown_render",
    "LOG",
    "state_connectToLogger",
    "document_contextualize",
    "__version__",
]
