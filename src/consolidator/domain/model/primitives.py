"""Domain primitives: date intervals and plan/product code sets.

Range bounds are calendar dates or aware instants. Bounds are always compared as
instants: a plain date stands for midnight UTC of that day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

type ProposalId = str
type GroupId = str
type Fingerprint = str

WILDCARD_TOKEN: Final[str] = "*"


def as_instant(value: date) -> datetime:
    """Return ``value`` as an aware UTC instant."""

    if isinstance(value, datetime):
        return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    return datetime.combine(value, time.min, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class DateRange:
    """Interval starting at ``start``; ``end=None`` means open-ended."""

    start: date
    end: date | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    def widened(self, other: DateRange) -> DateRange:
        """Return the smallest range covering both ranges, gaps included."""

        start = min(self.start, other.start, key=as_instant)
        if self.end is None or other.end is None:
            return DateRange(start=start, end=None)
        return DateRange(start=start, end=max(self.end, other.end, key=as_instant))

    def __str__(self) -> str:
        end = self.end.isoformat() if self.end is not None else "open"
        return f"[{self.start.isoformat()}, {end}]"


@dataclass(frozen=True, slots=True)
class CodeSet:
    """A finite set of product/plan codes, or the match-all wildcard.

    The wildcard is absorbing: the union of anything with the wildcard is the
    wildcard. A wildcard ``CodeSet`` carries no codes.
    """

    codes: frozenset[str] = frozenset()
    wildcard: bool = False

    def __post_init__(self) -> None:
        if self.wildcard and self.codes:
            raise ValueError("A wildcard code set cannot also list codes")

    @classmethod
    def match_all(cls) -> CodeSet:
        return cls(wildcard=True)

    @classmethod
    def of(cls, codes: Iterable[str]) -> CodeSet:
        values = frozenset(codes)
        if WILDCARD_TOKEN in values:
            return cls.match_all()
        return cls(codes=values)

    def union(self, other: CodeSet) -> CodeSet:
        if self.wildcard or other.wildcard:
            return CodeSet.match_all()
        return CodeSet(codes=self.codes | other.codes)

    def __or__(self, other: CodeSet) -> CodeSet:
        return self.union(other)

    def __contains__(self, code: object) -> bool:
        return self.wildcard or code in self.codes

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.codes))

    @property
    def is_empty(self) -> bool:
        return not self.wildcard and not self.codes

    def __str__(self) -> str:
        if self.wildcard:
            return WILDCARD_TOKEN
        return "{" + ", ".join(self) + "}"
