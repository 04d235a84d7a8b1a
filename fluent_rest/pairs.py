"""Parsing of "name=value" pair strings into (name, value) tuples."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any


def split_pair(pair: str | None) -> tuple[str, str] | None:
    """Split one "name=value" string on its first '='.

    Returns None when the string is None, has no '=' or has an empty name.
    "name=" yields ("name", "").
    """
    if pair is None:
        return None
    name, sep, value = pair.partition("=")
    if not sep or not name:
        return None
    return name, value


def iter_pairs(
    pairs: tuple[Any, ...],
    split_ampersand: bool = False,
) -> Iterator[tuple[Any, Any]]:
    """Flatten the arguments of add_headers/add_parameters into pairs.

    Each argument may be a mapping, a "name=value" string, or a list/tuple of
    such strings. Mapping items are yielded as-is so the caller's own
    name/value checks apply. Malformed strings are dropped.

    With split_ampersand, a lone string argument containing '&' is treated as
    a query string and split first. Tokens without '=' are rejected on their
    own; they never borrow the following token as their value.
    """
    if len(pairs) == 1 and split_ampersand and isinstance(pairs[0], str) and "&" in pairs[0]:
        pairs = tuple(pairs[0].split("&"))

    for item in pairs:
        if item is None:
            continue
        if isinstance(item, Mapping):
            yield from item.items()
        elif isinstance(item, str):
            parsed = split_pair(item)
            if parsed is not None:
                yield parsed
        elif isinstance(item, (list, tuple)):
            for entry in item:
                if isinstance(entry, str):
                    parsed = split_pair(entry)
                    if parsed is not None:
                        yield parsed
