"""Small string and mapping helpers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

DEFAULT_SEP = ","


def trim(text: str) -> str:
    """Remove trailing whitespace."""
    return text.rstrip()


def split_str(text: str, delim: str = DEFAULT_SEP) -> list[str]:
    """Split on ``delim``; a trailing delimiter yields no empty last field."""
    if not delim:
        raise ValueError("Delimiter must not be empty")
    parts = text.split(delim)
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def split_by_linefeed(text: str) -> list[str]:
    """Split text into lines on line feeds."""
    return split_str(text, "\n")


def key_list(mapping: Mapping[Any, Any]) -> list[Any]:
    """Keys of a mapping in ascending order."""
    return sorted(mapping)


def join_keys(mapping: Mapping[Any, Any], sep: str = DEFAULT_SEP) -> str:
    """Join the keys of a mapping, in ascending order."""
    return join_items(key_list(mapping), sep)


def join_items(items: Iterable[Any], sep: str = DEFAULT_SEP) -> str:
    """Join items as strings, in iteration order."""
    return sep.join(str(item) for item in items)