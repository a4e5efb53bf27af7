"""
Parse-scoped state shared by the extensions

A ParseContext is created empty for every parse and carries the abbreviation
table from the declaration extension to the inline abbreviation extension.
It also exposes the host's inline callbacks so block extensions can tokenize
or render nested inline markdown without knowing which engine runs them.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Pattern, Protocol


class AbbreviationTable:
    """
    Immutable mapping of declared term -> definition

    declare() returns a new table, so a context snapshot taken at one source
    position keeps seeing exactly the declarations made before it.

    Terms are matched as literal text: every term is escaped and the
    alternation is ordered longest first, so "HTML5" wins over "HTML".
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None) -> None:
        self._entries: Dict[str, str] = dict(entries or {})
        self._pattern = self.pattern_compile(self._entries)

    @staticmethod
    def pattern_compile(terms: Any) -> Optional[Pattern[str]]:
        """Build the literal alternation over all non-empty terms"""
        ordered = sorted((term for term in terms if term), key=len, reverse=True)
        if not ordered:
            return None
        return re.compile('|'.join(re.escape(term) for term in ordered))

    def declare(self, term: str, definition: str) -> "AbbreviationTable":
        """Return a table with term inserted, or its definition overwritten"""
        entries = dict(self._entries)
        entries[term] = definition
        return AbbreviationTable(entries)

    def get(self, term: str) -> Optional[str]:
        return self._entries.get(term)

    def start(self, src: str) -> int:
        """Index of the first term occurrence in src, or -1"""
        if self._pattern is None:
            return -1
        match = self._pattern.search(src)
        return match.start() if match else -1

    def match(self, src: str) -> Optional[str]:
        """Term occurring exactly at the start of src, if any"""
        if self._pattern is None:
            return None
        match = self._pattern.match(src)
        return match.group(0) if match else None

    def as_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    def __contains__(self, term: object) -> bool:
        return term in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AbbreviationTable({self._entries!r})"


class InlineHost(Protocol):
    """Inline entry points a host engine offers to the extensions"""

    def inline_tokenize(self, text: str, context: "ParseContext") -> List[Dict[str, Any]]:
        ...

    def inline_render(self, text: str, context: "ParseContext") -> str:
        ...


@dataclass
class ParseContext:
    """
    Mutable state bag for one parse run

    Attributes:
        abbreviations: Terms declared so far, in source order
        host: Engine callbacks for nested inline content. Without a host,
              inline tokenizing yields a single text token and inline
              rendering returns the text unchanged.
    """
    abbreviations: AbbreviationTable = field(default_factory=AbbreviationTable)
    host: Optional[InlineHost] = None

    def abbreviation_declare(self, term: str, definition: str) -> None:
        self.abbreviations = self.abbreviations.declare(term, definition)

    def snapshot(self) -> "ParseContext":
        """Freeze the context as of the current source position"""
        return replace(self)

    def inline_tokenize(self, text: str, tokens: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Append the inline tokens of text to tokens and return tokens"""
        if self.host is None:
            tokens.append({'type': 'text', 'raw': text})
        else:
            tokens.extend(self.host.inline_tokenize(text, self))
        return tokens

    def inline_render(self, text: str) -> str:
        """Render inline markdown text to HTML"""
        if self.host is None:
            return text
        return self.host.inline_render(text, self)
