"""Tests for the invocation time budget."""

from __future__ import annotations

import pytest

from venture_lab.pipeline.budget import TimeBudget


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.unit
class TestTimeBudget:
    def test_counts_down_and_exhausts(self) -> None:
        clock = _Clock()
        budget = TimeBudget(270, clock=clock)
        assert budget.remaining() == 270
        assert not budget.exhausted()

        clock.now += 269.5
        assert budget.remaining() == pytest.approx(0.5)

        clock.now += 1
        assert budget.exhausted()
        assert budget.remaining() == 0

    def test_zero_budget_is_exhausted_immediately(self) -> None:
        assert TimeBudget(0, clock=_Clock()).exhausted()
