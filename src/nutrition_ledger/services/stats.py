"""Statistics service for daily ledgers and goals."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from nutrition_ledger.domain.stats import DailyStats, DailyStatsRow, UserGoals


class DailyStatsRepository(Protocol):
    """Persistence interface for per-day stats."""

    def load_daily_stats(self, user_id: UUID, day: date) -> DailyStats | None:
        """Return the stored stats for a day, if any."""

    def save_daily_stats(self, user_id: UUID, day: date, stats: DailyStats) -> None:
        """Create or replace the stats for a day."""

    def list_daily_stats(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailyStatsRow]:
        """Return stored stats between two days, inclusive."""


class GoalsRepository(Protocol):
    """Persistence interface for user goals."""

    def get_goals(self, user_id: UUID) -> UserGoals | None:
        """Return the user's goals, if set."""

    def save_goals(self, user_id: UUID, goals: UserGoals) -> None:
        """Create or replace the user's goals."""


@dataclass(frozen=True)
class DaySummary:
    """Net calories and macros for one day."""

    day: date
    net_calories: int
    carbs: int
    protein: int
    fat: int


@dataclass
class PeriodSummary:
    """Aggregated totals for a period."""

    daily: list[DaySummary]
    avg_net_calories: float
    avg_carbs: float
    avg_protein: float
    avg_fat: float


@dataclass(frozen=True)
class DayOverview:
    """A day's stats next to the user's goals."""

    stats: DailyStats
    goals: UserGoals
    remaining_calories: int
    remaining_carbs: int
    remaining_protein: int
    remaining_fat: int


@dataclass
class StatsService:
    """Service for period summaries and goal progress."""

    repository: DailyStatsRepository
    goals_repository: GoalsRepository

    def get_range(self, user_id: UUID, start: date, end: date) -> PeriodSummary:
        """Return one summary per day between ``start`` and ``end``."""
        if end < start:
            raise ValueError("end must not be before start")
        rows = self.repository.list_daily_stats(user_id, start, end)
        return _aggregate_period(start, (end - start).days + 1, rows)

    def get_week(self, user_id: UUID, today: date) -> PeriodSummary:
        """Return week-to-date summaries, weeks starting on Monday."""
        start = today - timedelta(days=today.weekday())
        return self.get_range(user_id, start, today)

    def get_goals(self, user_id: UUID) -> UserGoals:
        """Return stored goals or the defaults."""
        return self.goals_repository.get_goals(user_id) or UserGoals()

    def set_goals(self, user_id: UUID, goals: UserGoals) -> UserGoals:
        """Persist new goals."""
        self.goals_repository.save_goals(user_id, goals)
        return goals

    def get_overview(self, user_id: UUID, stats: DailyStats) -> DayOverview:
        """Compare a day's stats with the user's goals."""
        goals = self.get_goals(user_id)
        return DayOverview(
            stats=stats,
            goals=goals,
            remaining_calories=goals.calorie_goal - stats.net_calories,
            remaining_carbs=goals.carbs_goal - stats.macros.carbs,
            remaining_protein=goals.protein_goal - stats.macros.protein,
            remaining_fat=goals.fat_goal - stats.macros.fat,
        )


def _summarize(day: date, stats: DailyStats) -> DaySummary:
    return DaySummary(
        day=day,
        net_calories=stats.net_calories,
        carbs=stats.macros.carbs,
        protein=stats.macros.protein,
        fat=stats.macros.fat,
    )


def _aggregate_period(
    start: date, days: int, rows: list[DailyStatsRow]
) -> PeriodSummary:
    by_day = {row.day: row.stats for row in rows}
    daily = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        daily.append(_summarize(day, by_day.get(day, DailyStats.zero())))

    total_days = max(len(daily), 1)
    return PeriodSummary(
        daily=daily,
        avg_net_calories=sum(entry.net_calories for entry in daily) / total_days,
        avg_carbs=sum(entry.carbs for entry in daily) / total_days,
        avg_protein=sum(entry.protein for entry in daily) / total_days,
        avg_fat=sum(entry.fat for entry in daily) / total_days,
    )
