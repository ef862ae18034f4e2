"""Tests for the distribution builder."""

from __future__ import annotations

from moodiary.analytics.distribution import DistItem, build_distribution


def test_empty_input() -> None:
    assert build_distribution([]) == []


def test_counts_and_ratios() -> None:
    result = build_distribution(["a", "b", "a", "a"])
    assert result == [
        DistItem(key="a", count=3, ratio=0.75),
        DistItem(key="b", count=1, ratio=0.25),
    ]


def test_ties_keep_first_seen_order() -> None:
    result = build_distribution(["x", "y", "z", "y", "x"])
    assert [item.key for item in result] == ["x", "y", "z"]


def test_ratios_sum_to_one() -> None:
    result = build_distribution(["a", "b", "c", "c"])
    assert abs(sum(item.ratio for item in result) - 1.0) < 1e-9


def test_accepts_generator() -> None:
    result = build_distribution(label for label in ["k", "k"])
    assert result == [DistItem(key="k", count=2, ratio=1.0)]
