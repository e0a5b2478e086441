from __future__ import annotations

from typing import Iterable


def capability_match(needs: Iterable[str], capabilities: Iterable[str]) -> float:
    """Fraction of distinct needs covered by the hospital's capabilities.

    An emergency with no declared needs is compatible with any hospital, so an
    empty ``needs`` scores 1.0.
    """
    required = frozenset(needs)
    if not required:
        return 1.0
    offered = frozenset(capabilities)
    return len(required & offered) / len(required)
