"""
Dotted field paths over parsed JSON records.

A path such as ``contactInfo.phone``, ``tumors.0.stage`` or ``tumors[]`` is
parsed once into typed segments and then walked against a record. Resolution
never raises: anything that cannot be reached resolves to ``ABSENT``, which is
distinct from a present ``None`` or empty string.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Union

ARRAY_MARKER = "[]"


class _Absent:
    """Sentinel type for "field not present"."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Any = _Absent()


@dataclass(frozen=True)
class Key:
    """Descend into a mapping by key."""

    name: str


@dataclass(frozen=True)
class Index:
    """
    Zero-based position in a sequence.

    On a mapping the raw text is used as an ordinary key, so ``"0"`` keys
    still resolve.
    """

    position: int
    raw: str


@dataclass(frozen=True)
class AllElements:
    """The whole sequence; only resolves when it is a non-empty sequence."""


Segment = Union[Key, Index, AllElements]


@dataclass(frozen=True)
class FieldPath:
    """A parsed path: the original text plus its typed segments."""

    text: str
    segments: tuple[Segment, ...]

    def __str__(self) -> str:
        return self.text


@lru_cache(maxsize=1024)
def parse_path(path: str) -> FieldPath:
    """
    Parse a dotted path into typed segments.

    ``tumors[]`` becomes ``Key("tumors"), AllElements()``; a purely numeric
    segment becomes an ``Index``; everything else is a ``Key``.
    """
    segments: list[Segment] = []
    for part in path.split("."):
        if part.endswith(ARRAY_MARKER):
            name = part[: -len(ARRAY_MARKER)]
            if name:
                segments.append(Key(name))
            segments.append(AllElements())
        elif part.isascii() and part.isdigit():
            segments.append(Index(int(part), part))
        else:
            segments.append(Key(part))
    return FieldPath(text=path, segments=tuple(segments))


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _step(current: Any, segment: Segment) -> Any:
    if current is None or current is ABSENT:
        return ABSENT

    if isinstance(segment, AllElements):
        if _is_sequence(current) and len(current) > 0:
            return current
        return ABSENT

    if _is_sequence(current):
        # Sequences only accept an index (or the [] marker above)
        if isinstance(segment, Index) and segment.position < len(current):
            return current[segment.position]
        return ABSENT

    if isinstance(current, Mapping):
        key = segment.raw if isinstance(segment, Index) else segment.name
        return current.get(key, ABSENT)

    return ABSENT


def resolve(record: Any, path: str | FieldPath) -> Any:
    """
    Resolve a path against a record.

    Args:
        record: Parsed JSON tree (mapping, sequence or scalar)
        path: Dotted path string or pre-parsed FieldPath

    Returns:
        The addressed value, or ABSENT if any step fails
    """
    field_path = parse_path(path) if isinstance(path, str) else path
    if not field_path.text:
        return ABSENT

    current = record
    for segment in field_path.segments:
        current = _step(current, segment)
        if current is ABSENT:
            return ABSENT
    return current


def is_blank(value: Any) -> bool:
    """Absent, null or empty string. ``0`` and ``False`` are not blank."""
    return value is ABSENT or value is None or (isinstance(value, str) and value == "")


def is_missing(value: Any) -> bool:
    """Absent or null; an empty string counts as present."""
    return value is ABSENT or value is None
