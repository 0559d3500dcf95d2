"""Dotted field paths and the equality/membership predicates built on them."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

MEMBERSHIP_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class FieldPath:
    """A parsed path such as ``data.address``.

    Resolution descends through mappings by key and through lists by
    integer index. A segment that is not present makes the path unresolved.
    """

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, path: str) -> FieldPath:
        if not isinstance(path, str) or not path.strip():
            raise ValueError("Field path must be a non-empty string")
        segments = tuple(path.split("."))
        if any(not segment for segment in segments):
            raise ValueError(f"Field path '{path}' contains an empty segment")
        return cls(segments)

    def __str__(self) -> str:
        return ".".join(self.segments)

    def resolve(self, document: Any) -> tuple[bool, Any]:
        current = document
        for segment in self.segments:
            if isinstance(current, Mapping):
                if segment not in current:
                    return False, None
                current = current[segment]
            elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
                current = current[int(segment)]
            else:
                return False, None
        return True, current

    def extract(self, document: Any) -> Any:
        """Resolved value, or ``None`` when the path does not resolve."""
        found, value = self.resolve(document)
        return value if found else None


def values_equal(left: Any, right: Any) -> bool:
    # True == 1 in Python; stored JSON keeps booleans and numbers apart.
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return left == right


@dataclass(frozen=True)
class FieldPredicate:
    path: FieldPath
    expected: Any

    @property
    def is_membership(self) -> bool:
        return isinstance(self.expected, MEMBERSHIP_TYPES)

    def matches(self, document: Any) -> bool:
        found, value = self.path.resolve(document)
        if not found:
            return False
        if self.is_membership:
            return any(values_equal(value, option) for option in self.expected)
        return values_equal(value, self.expected)


def compile_filters(filters: Mapping[str, Any] | None) -> tuple[FieldPredicate, ...]:
    if not filters:
        return ()
    return tuple(FieldPredicate(FieldPath.parse(path), expected) for path, expected in filters.items())


def matches_all(document: Any, predicates: Sequence[FieldPredicate]) -> bool:
    return all(predicate.matches(document) for predicate in predicates)
