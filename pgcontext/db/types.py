"""Column types that normalise values on their way to and from PostgreSQL."""

from __future__ import annotations

import enum
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type, TypeVar

import sqlalchemy as sa
from sqlalchemy.types import TypeDecorator

E = TypeVar("E", bound=enum.Enum)

_WORD_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATOR_RE = re.compile(r"[\s\-_]+")


def to_snake_case(name: str) -> str:
    """``InProgress``/``IN_PROGRESS``/``in-progress`` -> ``in_progress``."""
    spaced = _WORD_BOUNDARY_RE.sub("_", name.strip())
    parts = [part for part in _SEPARATOR_RE.split(spaced) if part]
    return "_".join(part.lower() for part in parts)


def to_pascal_case(name: str) -> str:
    """``in_progress`` -> ``InProgress``."""
    return "".join(part[:1].upper() + part[1:] for part in to_snake_case(name).split("_") if part)


class SnakeCaseEnum(TypeDecorator):
    """Stores enum members as lower snake-case text.

    With ``nullable=True`` a missing member is written as an empty string and
    blank text reads back as ``None``.
    """

    impl = sa.String
    cache_ok = True

    def __init__(self, enum_class: Type[E], *, nullable: bool = False, length: Optional[int] = None) -> None:
        super().__init__(length=length)
        self.enum_class = enum_class
        self.nullable = nullable
        self._members: Dict[str, E] = {to_snake_case(member.name): member for member in enum_class}

    def process_bind_param(self, value: Optional[E], dialect: Any) -> Optional[str]:
        if value is None:
            return "" if self.nullable else None
        if not isinstance(value, self.enum_class):
            value = self.parse(value) if isinstance(value, str) else self.enum_class(value)
        return to_snake_case(value.name)

    def process_result_value(self, value: Optional[str], dialect: Any) -> Optional[E]:
        if value is None or (self.nullable and not value.strip()):
            return None
        return self.parse(value)

    def parse(self, token: str) -> E:
        member = self._members.get(to_snake_case(token))
        if member is None:
            raise ValueError(f"'{token}' is not a valid {self.enum_class.__name__}")
        return member


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert ``value`` to UTC; naive values are taken as local time."""
    if value is None:
        return None
    return value.astimezone(timezone.utc)


class UtcDateTime(TypeDecorator):
    """``timestamptz`` column that always hands out UTC datetimes."""

    impl = sa.DateTime
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(timezone=True)

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        return as_utc(value)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        return as_utc(value)


__all__ = ["SnakeCaseEnum", "UtcDateTime", "as_utc", "to_pascal_case", "to_snake_case"]
