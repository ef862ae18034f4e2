"""Ranked frequency distributions over categorical labels."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class DistItem:
    """One bucket of a distribution."""

    key: str
    count: int
    ratio: float


def build_distribution(labels: Iterable[str]) -> list[DistItem]:
    """Count labels and rank them.

    Args:
        labels: Label sequence, possibly empty.

    Returns:
        Items sorted by count descending. Ties keep first-encountered order
        (Counter preserves insertion order and ``sorted`` is stable).
    """
    counts = Counter(labels)
    total = max(1, sum(counts.values()))
    items = [DistItem(key=k, count=c, ratio=c / total) for k, c in counts.items()]
    return sorted(items, key=lambda item: -item.count)
