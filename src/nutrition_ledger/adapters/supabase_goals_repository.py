"""Supabase repository for user goals."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrition_ledger.domain.stats import UserGoals
from nutrition_ledger.services.stats import GoalsRepository


@dataclass
class SupabaseGoalsRepository(GoalsRepository):
    """Supabase implementation for the user_goals table."""

    client: Client

    def get_goals(self, user_id: UUID) -> UserGoals | None:
        """Return the stored goals for a user."""
        response = (
            self.client.table("user_goals")
            .select("calorie_goal, carbs_goal, protein_goal, fat_goal")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        defaults = UserGoals()
        return UserGoals(
            calorie_goal=int(row.get("calorie_goal") or defaults.calorie_goal),
            carbs_goal=int(row.get("carbs_goal") or defaults.carbs_goal),
            protein_goal=int(row.get("protein_goal") or defaults.protein_goal),
            fat_goal=int(row.get("fat_goal") or defaults.fat_goal),
        )

    def save_goals(self, user_id: UUID, goals: UserGoals) -> None:
        """Update the user's goals or insert them when missing."""
        payload = {
            "calorie_goal": goals.calorie_goal,
            "carbs_goal": goals.carbs_goal,
            "protein_goal": goals.protein_goal,
            "fat_goal": goals.fat_goal,
        }
        existing = (
            self.client.table("user_goals")
            .select("id")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if existing.data:
            self.client.table("user_goals").update(
                {**payload, "updated_at": datetime.now(tz=UTC).isoformat()}
            ).eq("id", existing.data[0]["id"]).execute()
            return
        self.client.table("user_goals").insert(
            {"user_id": str(user_id), **payload}
        ).execute()
