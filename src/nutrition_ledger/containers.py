"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_ledger.adapters.http_completion_client import HttpxCompletionClient
from nutrition_ledger.adapters.openai_completion_client import OpenAICompletionClient
from nutrition_ledger.adapters.supabase_chat_repository import SupabaseChatRepository
from nutrition_ledger.adapters.supabase_daily_stats_repository import (
    SupabaseDailyStatsRepository,
)
from nutrition_ledger.adapters.supabase_goals_repository import (
    SupabaseGoalsRepository,
)
from nutrition_ledger.config import Settings
from nutrition_ledger.services.chat import ChatService
from nutrition_ledger.services.estimation import CompletionClient, NutritionEstimator
from nutrition_ledger.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    chat_service: ChatService
    stats_service: StatsService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    chat_repository = SupabaseChatRepository(supabase_client)
    stats_repository = SupabaseDailyStatsRepository(supabase_client)
    goals_repository = SupabaseGoalsRepository(supabase_client)

    http_client: HttpxCompletionClient | None = None
    completion_client: CompletionClient
    if resolved_settings.completion_backend == "http":
        http_client = HttpxCompletionClient.create(
            resolved_settings.completion_url,
            timeout_seconds=resolved_settings.completion_timeout_seconds,
        )
        completion_client = http_client
    else:
        if not resolved_settings.openai_api_key:
            raise RuntimeError("OPENAI_API_KEY is required for the openai backend")
        completion_client = OpenAICompletionClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
            store=resolved_settings.openai_store,
        )

    chat_service = ChatService(
        estimator=NutritionEstimator(completion_client),
        message_repository=chat_repository,
        stats_repository=stats_repository,
        debug=resolved_settings.debug_notices,
    )
    stats_service = StatsService(
        repository=stats_repository,
        goals_repository=goals_repository,
    )

    async def close_resources() -> None:
        if http_client is not None:
            await http_client.close()

    return AppContainer(
        settings=resolved_settings,
        chat_service=chat_service,
        stats_service=stats_service,
        close_resources=close_resources,
    )
