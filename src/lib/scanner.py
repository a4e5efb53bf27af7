"""
Shared scanning helpers for tag-delimited extensions

- tag_findMatching: balanced open/close delimiter search with depth tracking
- attributes_parse / attributes_render: ``key="value"`` pairs of an opening tag
"""

import re
from typing import Dict, Optional


ATTRIBUTE_PATTERN = re.compile(r'(?P<key>[A-Za-z_][\w:.-]*)="(?P<value>[^"]*)"')


def tag_findMatching(src: str, open_tag: str, close_tag: str) -> Optional[int]:
    """
    Find the end of the close tag matching the open tag at position 0

    Scans forward from just past the opening delimiter, tracking nesting
    depth. Increments depth on each further open_tag, decrements on each
    close_tag. The delimiters must never partially overlap.

    Args:
        src: Source text starting with open_tag
        open_tag: Opening delimiter (e.g., "<details")
        close_tag: Closing delimiter (e.g., "</details>")

    Returns:
        Index immediately after the matching close_tag, or None if the
        source ends before depth returns to zero

    Example:
        For src "<details>\\n<details>x</details>\\n</details>tail":
        Returns 41 (the offset of "tail")

        Depth tracking: <details 1 <details 2 </details> 1 </details> 0
    """
    depth = 1
    index = len(open_tag)

    while depth > 0 and index < len(src):
        if src.startswith(close_tag, index):
            depth -= 1
        elif src.startswith(open_tag, index):
            depth += 1
        if depth > 0:
            index += 1

    if depth != 0:
        return None

    return index + len(close_tag)


def attributes_parse(tag: str) -> Dict[str, str]:
    """
    Extract ``key="value"`` pairs from raw tag text

    Pairs are collected left to right without overlap; anything that is not a
    well-formed double-quoted pair (bare flags, single quotes) is skipped.
    A repeated key keeps its first position and its last value.

    Example:
        Input: '<details class="note" open data-id="7">'
        Output: {"class": "note", "data-id": "7"}
    """
    attributes: Dict[str, str] = {}
    for match in ATTRIBUTE_PATTERN.finditer(tag):
        attributes[match.group('key')] = match.group('value')
    return attributes


def attributes_render(attributes: Dict[str, str]) -> str:
    """Serialize attributes back to space-separated ``key="value"`` pairs"""
    return ' '.join(f'{key}="{value}"' for key, value in attributes.items())
