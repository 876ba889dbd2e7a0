"""Id policies for JSON collections."""
from __future__ import annotations

from typing import Any, Iterable
from uuid import uuid4


def canonical_id(value: Any) -> str:
    """Single comparable form for ids arriving as int or str."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _numeric(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class IntegerIds:
    """
    ``1 + max(existing numeric ids, high-water mark)``.

    The high-water mark is the last id ever issued for the collection, so
    deleting the newest record never lets its id come back.
    """

    name = "int"

    def next_id(self, existing: Iterable[Any], high_water: int = 0) -> int:
        numbers = [n for n in (_numeric(v) for v in existing) if n is not None]
        return max([0, high_water, *numbers]) + 1


class TokenIds:
    """Random hex tokens, never derived from record content."""

    name = "token"

    def next_id(self, existing: Iterable[Any], high_water: int = 0) -> str:
        taken = {canonical_id(v) for v in existing}
        token = uuid4().hex
        while token in taken:
            token = uuid4().hex
        return token


def policy_for(name: str) -> IntegerIds | TokenIds:
    if (name or "").strip().lower() == "token":
        return TokenIds()
    return IntegerIds()
