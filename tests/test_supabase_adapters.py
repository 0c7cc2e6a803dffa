"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import uuid4

from nutrition_ledger.adapters.supabase_chat_repository import SupabaseChatRepository
from nutrition_ledger.adapters.supabase_daily_stats_repository import (
    SupabaseDailyStatsRepository,
)
from nutrition_ledger.adapters.supabase_goals_repository import SupabaseGoalsRepository
from nutrition_ledger.domain.messages import ASSISTANT, USER, Message
from nutrition_ledger.domain.stats import (
    CalorieTotals,
    DailyStats,
    MacroTotals,
    UserGoals,
)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "delete": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def _start(self, action: str) -> "FakeTable":
        self._action = action
        self.actions.append(action)
        return self

    def select(self, *_args) -> "FakeTable":
        return self._start("select")

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_payload = payload
        return self._start("insert")

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_payload = payload
        return self._start("update")

    def delete(self) -> "FakeTable":
        return self._start("delete")

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def lte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_chat_repository_replaces_day_transcript() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()
    sent_at = datetime(2024, 5, 14, 8, 0, tzinfo=UTC)
    messages = [
        Message(id=10, role=USER, text="2 eggs", timestamp=sent_at),
        Message(
            id=11,
            role=ASSISTANT,
            text="• Calories: 150 kcal",
            timestamp=sent_at,
            response_to=10,
        ),
    ]

    SupabaseChatRepository(client).save_messages(user_id, date(2024, 5, 14), messages)

    table = client.tables["chat_messages"]
    assert table.actions == ["delete", "insert"]
    rows = table.last_payload
    assert isinstance(rows, list)
    assert rows[0]["timestamp"] == 10
    assert rows[0]["message_type"] == "user"
    assert rows[1]["message_type"] == "ai"
    assert rows[1]["response_to"] == 10
    assert rows[1]["date"] == "2024-05-14"


def test_chat_repository_parses_legacy_rows() -> None:
    client = FakeSupabaseClient()
    client.table("chat_messages").queue(
        "select",
        [
            {"timestamp": 1715673600000, "message": "2 eggs", "message_type": "user"},
            {
                "timestamp": 1715673600500,
                "message": "Calories: 150",
                "message_type": "ai",
                "image_ref": "",
            },
        ],
    )

    messages = SupabaseChatRepository(client).load_messages(
        uuid4(), date(2024, 5, 14)
    )

    assert [message.role for message in messages] == [USER, ASSISTANT]
    assert messages[0].timestamp == datetime(2024, 5, 14, 8, 0, tzinfo=UTC)
    assert messages[1].response_to is None
    assert messages[1].image_ref is None


def test_chat_repository_deletes_by_message_id() -> None:
    client = FakeSupabaseClient()
    user_id = uuid4()

    SupabaseChatRepository(client).delete_message(user_id, 42)

    table = client.tables["chat_messages"]
    assert table.actions == ["delete"]
    assert ("timestamp", 42) in table.last_filters
    assert ("user_id", str(user_id)) in table.last_filters


def test_daily_stats_repository_insert_then_update() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_nutrition")
    user_id = uuid4()
    stats = DailyStats(
        calories=CalorieTotals(food=150, exercise=300),
        macros=MacroTotals(carbs=1, protein=12, fat=10),
    )
    repository = SupabaseDailyStatsRepository(client)

    repository.save_daily_stats(user_id, date(2024, 5, 14), stats)
    assert table.actions[-1] == "insert"
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["calories_exercise"] == 300
    assert table.last_payload["date"] == "2024-05-14"

    table.queue("select", [{"id": 7}])
    repository.save_daily_stats(user_id, date(2024, 5, 14), stats)
    assert table.actions[-1] == "update"
    assert ("id", 7) in table.last_filters


def test_daily_stats_repository_loads_and_lists() -> None:
    client = FakeSupabaseClient()
    table = client.table("daily_nutrition")
    row = {
        "date": "2024-05-14",
        "calories_food": 1800,
        "calories_exercise": None,
        "carbs": 200,
        "protein": 90,
        "fat": 60,
    }
    table.queue("select", [row])
    table.queue("select", [row])
    repository = SupabaseDailyStatsRepository(client)

    loaded = repository.load_daily_stats(uuid4(), date(2024, 5, 14))
    rows = repository.list_daily_stats(uuid4(), date(2024, 5, 13), date(2024, 5, 19))

    assert loaded is not None
    assert loaded.calories.food == 1800
    assert loaded.calories.exercise == 0
    assert rows[0].day == date(2024, 5, 14)
    assert ("date", "2024-05-19") in table.last_filters
    assert repository.load_daily_stats(uuid4(), date(2024, 5, 15)) is None


def test_goals_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    table = client.table("user_goals")
    user_id = uuid4()
    repository = SupabaseGoalsRepository(client)

    assert repository.get_goals(user_id) is None

    repository.save_goals(user_id, UserGoals(1800, 200, 140, 60))
    assert table.actions[-1] == "insert"

    table.queue(
        "select",
        [
            {
                "calorie_goal": 1800,
                "carbs_goal": 200,
                "protein_goal": None,
                "fat_goal": 60,
            }
        ],
    )
    goals = repository.get_goals(user_id)
    assert goals == UserGoals(1800, 200, 150, 60)
