"""Request and response models for the HTTP API."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from nutrition_ledger.domain.messages import Message
from nutrition_ledger.domain.stats import DailyStats, UserGoals
from nutrition_ledger.services.chat import ChatOutcome
from nutrition_ledger.services.stats import DayOverview, PeriodSummary


class MessageRequest(BaseModel):
    """Text and optional image for a new or edited entry."""

    text: str = ""
    image_ref: str | None = None


class GoalsRequest(BaseModel):
    """Daily targets."""

    calorie_goal: int = Field(ge=0)
    carbs_goal: int = Field(ge=0)
    protein_goal: int = Field(ge=0)
    fat_goal: int = Field(ge=0)

    def to_goals(self) -> UserGoals:
        """Convert to the domain model."""
        return UserGoals(**self.model_dump())


class MessageOut(BaseModel):
    """Serialized chat message."""

    id: int
    role: str
    text: str
    timestamp: datetime
    image_ref: str | None
    response_to: int | None

    @classmethod
    def from_domain(cls, message: Message) -> "MessageOut":
        """Build from a domain message."""
        return cls(
            id=message.id,
            role=message.role,
            text=message.text,
            timestamp=message.timestamp,
            image_ref=message.image_ref,
            response_to=message.response_to,
        )


class CaloriesOut(BaseModel):
    """Calories eaten and burned."""

    food: int
    exercise: int


class MacrosOut(BaseModel):
    """Macro totals in grams."""

    carbs: int
    protein: int
    fat: int


class StatsOut(BaseModel):
    """Serialized daily stats."""

    calories: CaloriesOut
    macros: MacrosOut

    @classmethod
    def from_domain(cls, stats: DailyStats) -> "StatsOut":
        """Build from domain stats."""
        return cls.model_validate(stats.as_dict())


class NoticeOut(BaseModel):
    """Non-fatal problem to show the user."""

    level: str
    code: str
    text: str


class OutcomeOut(BaseModel):
    """Transcript and stats after an operation."""

    messages: list[MessageOut]
    stats: StatsOut
    notices: list[NoticeOut]
    response: MessageOut | None = None

    @classmethod
    def from_domain(cls, outcome: ChatOutcome) -> "OutcomeOut":
        """Build from a chat outcome."""
        return cls(
            messages=[MessageOut.from_domain(message) for message in outcome.messages],
            stats=StatsOut.from_domain(outcome.stats),
            notices=[
                NoticeOut(level=notice.level, code=notice.code, text=notice.text)
                for notice in outcome.notices
            ],
            response=(
                MessageOut.from_domain(outcome.response) if outcome.response else None
            ),
        )


class GoalsOut(BaseModel):
    """Serialized goals."""

    calorie_goal: int
    carbs_goal: int
    protein_goal: int
    fat_goal: int

    @classmethod
    def from_domain(cls, goals: UserGoals) -> "GoalsOut":
        """Build from domain goals."""
        return cls(
            calorie_goal=goals.calorie_goal,
            carbs_goal=goals.carbs_goal,
            protein_goal=goals.protein_goal,
            fat_goal=goals.fat_goal,
        )


class OverviewOut(BaseModel):
    """Goals and remaining amounts for a day."""

    goals: GoalsOut
    remaining_calories: int
    remaining_carbs: int
    remaining_protein: int
    remaining_fat: int

    @classmethod
    def from_domain(cls, overview: DayOverview) -> "OverviewOut":
        """Build from a day overview."""
        return cls(
            goals=GoalsOut.from_domain(overview.goals),
            remaining_calories=overview.remaining_calories,
            remaining_carbs=overview.remaining_carbs,
            remaining_protein=overview.remaining_protein,
            remaining_fat=overview.remaining_fat,
        )


class DayOut(OutcomeOut):
    """A day's transcript, stats and goal progress."""

    overview: OverviewOut


class DaySummaryOut(BaseModel):
    """Net totals for one day."""

    day: date
    net_calories: int
    carbs: int
    protein: int
    fat: int


class PeriodOut(BaseModel):
    """Daily totals and averages for a period."""

    daily: list[DaySummaryOut]
    avg_net_calories: float
    avg_carbs: float
    avg_protein: float
    avg_fat: float

    @classmethod
    def from_domain(cls, summary: PeriodSummary) -> "PeriodOut":
        """Build from a period summary."""
        return cls(
            daily=[
                DaySummaryOut(
                    day=entry.day,
                    net_calories=entry.net_calories,
                    carbs=entry.carbs,
                    protein=entry.protein,
                    fat=entry.fat,
                )
                for entry in summary.daily
            ],
            avg_net_calories=summary.avg_net_calories,
            avg_carbs=summary.avg_carbs,
            avg_protein=summary.avg_protein,
            avg_fat=summary.avg_fat,
        )
