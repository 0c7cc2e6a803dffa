"""Supabase repository for daily nutrition stats."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from nutrition_ledger.domain.stats import (
    CalorieTotals,
    DailyStats,
    DailyStatsRow,
    MacroTotals,
)
from nutrition_ledger.services.stats import DailyStatsRepository

_COLUMNS = "date, calories_food, calories_exercise, carbs, protein, fat"


@dataclass
class SupabaseDailyStatsRepository(DailyStatsRepository):
    """Supabase implementation for the daily_nutrition table."""

    client: Client

    def load_daily_stats(self, user_id: UUID, day: date) -> DailyStats | None:
        """Return the stored stats for a day."""
        response = (
            self.client.table("daily_nutrition")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_stats(response.data[0])

    def save_daily_stats(self, user_id: UUID, day: date, stats: DailyStats) -> None:
        """Update the day's row or insert it when missing."""
        existing = (
            self.client.table("daily_nutrition")
            .select("id")
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .limit(1)
            .execute()
        )
        payload = {
            "calories_food": stats.calories.food,
            "calories_exercise": stats.calories.exercise,
            "carbs": stats.macros.carbs,
            "protein": stats.macros.protein,
            "fat": stats.macros.fat,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        if existing.data:
            self.client.table("daily_nutrition").update(payload).eq(
                "id", existing.data[0]["id"]
            ).execute()
            return
        self.client.table("daily_nutrition").insert(
            {"user_id": str(user_id), "date": day.isoformat(), **payload}
        ).execute()

    def list_daily_stats(
        self, user_id: UUID, start: date, end: date
    ) -> list[DailyStatsRow]:
        """Return stored rows between two days, inclusive."""
        response = (
            self.client.table("daily_nutrition")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=False)
            .execute()
        )
        return [
            DailyStatsRow(
                day=date.fromisoformat(str(row["date"])),
                stats=_parse_stats(row),
            )
            for row in response.data or []
        ]


def _parse_stats(row: dict[str, object]) -> DailyStats:
    return DailyStats(
        calories=CalorieTotals(
            food=int(row.get("calories_food") or 0),
            exercise=int(row.get("calories_exercise") or 0),
        ),
        macros=MacroTotals(
            carbs=int(row.get("carbs") or 0),
            protein=int(row.get("protein") or 0),
            fat=int(row.get("fat") or 0),
        ),
    )
