"""Daily stats ledger: pure reducers and the per-day update entry point."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from nutrition_ledger.domain.nutrition import FOOD, NutritionRecord
from nutrition_ledger.domain.stats import CalorieTotals, DailyStats, MacroTotals

StatsReducer = Callable[[DailyStats], DailyStats]
StatsListener = Callable[[StatsReducer], None]

_logger = logging.getLogger(__name__)


class LedgerDirection(Enum):
    """Whether a record is applied or rolled back."""

    ADD = "add"
    SUBTRACT = "subtract"


def apply_record(
    prev: DailyStats, record: NutritionRecord, direction: LedgerDirection
) -> DailyStats:
    """Return ``prev`` with ``record`` added or subtracted.

    Subtraction clamps every touched total at zero.
    """
    sign = 1 if direction is LedgerDirection.ADD else -1

    def step(current: int, amount: int) -> int:
        value = current + sign * amount
        return max(0, value) if direction is LedgerDirection.SUBTRACT else value

    if record.kind == FOOD:
        return DailyStats(
            calories=CalorieTotals(
                food=step(prev.calories.food, record.calories),
                exercise=prev.calories.exercise,
            ),
            macros=MacroTotals(
                carbs=step(prev.macros.carbs, record.carbs),
                protein=step(prev.macros.protein, record.protein),
                fat=step(prev.macros.fat, record.fat),
            ),
        )
    return DailyStats(
        calories=CalorieTotals(
            food=prev.calories.food,
            exercise=step(prev.calories.exercise, record.calories),
        ),
        macros=prev.macros,
    )


def reducer_for(record: NutritionRecord, direction: LedgerDirection) -> StatsReducer:
    """Bind a record and direction into a stats reducer."""

    def reducer(prev: DailyStats) -> DailyStats:
        return apply_record(prev, record, direction)

    return reducer


def reset_reducer(_prev: DailyStats) -> DailyStats:
    """Reducer that discards all totals."""
    return DailyStats.zero()


@dataclass
class StatsLedger:
    """Holds one day's stats and applies every change through ``update``."""

    stats: DailyStats = field(default_factory=DailyStats.zero)
    listeners: list[StatsListener] = field(default_factory=list)

    def update(self, reducer: StatsReducer) -> DailyStats:
        """Apply a reducer, notify listeners and return the new stats."""
        self.stats = reducer(self.stats)
        for listener in list(self.listeners):
            try:
                listener(reducer)
            except Exception:
                _logger.exception("Stats listener failed")
        return self.stats

    def add(self, record: NutritionRecord) -> DailyStats:
        """Add a record's contribution."""
        return self.update(reducer_for(record, LedgerDirection.ADD))

    def rollback(self, record: NutritionRecord) -> DailyStats:
        """Subtract a record's contribution, clamped at zero."""
        _logger.info(
            "Rolling back %s record: calories=%s carbs=%s protein=%s fat=%s",
            record.kind,
            record.calories,
            record.carbs,
            record.protein,
            record.fat,
        )
        return self.update(reducer_for(record, LedgerDirection.SUBTRACT))

    def reset(self) -> DailyStats:
        """Set every total to zero."""
        return self.update(reset_reducer)
