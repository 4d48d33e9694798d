"""Membership differ.

Computes which members to add and which to remove to move an observed
membership set to a desired one. Sets carry no order.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, Optional


@dataclass(frozen=True)
class MembershipDiff:
    """Additions and removals between desired and observed membership."""
    to_add: FrozenSet[str]
    to_remove: FrozenSet[str]

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def diff_members(
    desired: Optional[AbstractSet[str]],
    observed: Optional[AbstractSet[str]],
) -> Optional[MembershipDiff]:
    """Return ``desired - observed`` and ``observed - desired``.

    Args:
        desired: Desired member IDs, or None when membership is not managed
        observed: Observed member IDs (None is treated as empty)

    Returns:
        MembershipDiff, or None when ``desired`` is unset
    """
    if desired is None:
        return None
    desired = frozenset(desired)
    observed = frozenset(observed or ())
    return MembershipDiff(to_add=desired - observed, to_remove=observed - desired)
