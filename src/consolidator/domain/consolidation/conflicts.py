"""Plan-code conflict detection.

Two plan-code sets conflict only when they partially overlap. Disjoint sets
and identical sets are compatible, and the wildcard is compatible with
anything.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from consolidator.domain.model import CodeSet


def plan_codes_compatible(left: CodeSet, right: CodeSet) -> bool:
    if left.wildcard or right.wildcard:
        return True
    shared = left.codes & right.codes
    if not shared:
        return True
    return shared == left.codes and shared == right.codes


def has_plan_conflict(left: CodeSet, right: CodeSet) -> bool:
    return not plan_codes_compatible(left, right)
