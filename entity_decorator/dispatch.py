"""
Naming-convention resolver for generated accessors and finders.

`get_title` resolves to ("get", "title"), `find_first_by_status` to
("find_first_by", "status"). Decorators and finders call these once per
attribute lookup and bind the result; anything that does not resolve is
theirs to reject.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

ACCESSOR_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("get_", "get"),
    ("set_", "set"),
)

# Longest prefix first: "find_first_by_x" must not resolve as "find_by".
FINDER_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("find_first_by_", "find_first_by"),
    ("find_by_", "find_by"),
)


@dataclass(frozen=True)
class Resolved:
    action: str
    attribute: str


def resolve(method_name: str, prefixes: Sequence[Tuple[str, str]]) -> Optional[Resolved]:
    if method_name.startswith("__"):
        return None
    for prefix, action in prefixes:
        if method_name.startswith(prefix) and len(method_name) > len(prefix):
            return Resolved(action, method_name[len(prefix):])
    return None


def resolve_accessor(method_name: str) -> Optional[Resolved]:
    return resolve(method_name, ACCESSOR_PREFIXES)


def resolve_finder(method_name: str) -> Optional[Resolved]:
    return resolve(method_name, FINDER_PREFIXES)


__all__ = [
    "ACCESSOR_PREFIXES",
    "FINDER_PREFIXES",
    "Resolved",
    "resolve",
    "resolve_accessor",
    "resolve_finder",
]
