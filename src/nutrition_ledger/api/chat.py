"""Chat day and stats endpoints with simple token auth."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutrition_ledger.api.schemas import (
    DayOut,
    GoalsOut,
    GoalsRequest,
    MessageRequest,
    OutcomeOut,
    OverviewOut,
    PeriodOut,
)

if TYPE_CHECKING:
    from nutrition_ledger.containers import AppContainer

router = APIRouter(prefix="/users/{user_id}", tags=["chat"])


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_api_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/days/{day}", dependencies=[Depends(require_api_token)])
async def get_day(user_id: UUID, day: date, request: Request) -> DayOut:
    """Return the transcript, stats and goal progress for a day."""
    container: AppContainer = request.app.state.container
    outcome = container.chat_service.load_day(user_id, day)
    overview = container.stats_service.get_overview(user_id, outcome.stats)
    return DayOut(
        **OutcomeOut.from_domain(outcome).model_dump(),
        overview=OverviewOut.from_domain(overview),
    )


@router.post("/days/{day}/messages", dependencies=[Depends(require_api_token)])
async def send_message(
    user_id: UUID, day: date, payload: MessageRequest, request: Request
) -> OutcomeOut:
    """Log a food or exercise entry."""
    container: AppContainer = request.app.state.container
    try:
        outcome = await container.chat_service.send(
            user_id, day, payload.text, payload.image_ref
        )
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return OutcomeOut.from_domain(outcome)


@router.patch(
    "/days/{day}/messages/{message_id}", dependencies=[Depends(require_api_token)]
)
async def edit_message(
    user_id: UUID,
    day: date,
    message_id: int,
    payload: MessageRequest,
    request: Request,
) -> OutcomeOut:
    """Edit a user entry and re-estimate it."""
    container: AppContainer = request.app.state.container
    try:
        outcome = await container.chat_service.edit(
            user_id, day, message_id, payload.text, payload.image_ref
        )
    except LookupError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return OutcomeOut.from_domain(outcome)


@router.delete(
    "/days/{day}/messages/{message_id}", dependencies=[Depends(require_api_token)]
)
async def delete_message(
    user_id: UUID, day: date, message_id: int, request: Request
) -> OutcomeOut:
    """Delete an entry and roll back its contribution."""
    container: AppContainer = request.app.state.container
    try:
        outcome = await container.chat_service.delete(user_id, day, message_id)
    except LookupError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return OutcomeOut.from_domain(outcome)


@router.get("/stats/week", dependencies=[Depends(require_api_token)])
async def week_stats(user_id: UUID, today: date, request: Request) -> PeriodOut:
    """Return week-to-date daily totals and averages."""
    container: AppContainer = request.app.state.container
    return PeriodOut.from_domain(container.stats_service.get_week(user_id, today))


@router.get("/stats/range", dependencies=[Depends(require_api_token)])
async def range_stats(
    user_id: UUID, start: date, end: date, request: Request
) -> PeriodOut:
    """Return daily totals and averages between two days."""
    container: AppContainer = request.app.state.container
    try:
        summary = container.stats_service.get_range(user_id, start, end)
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return PeriodOut.from_domain(summary)


@router.get("/goals", dependencies=[Depends(require_api_token)])
async def get_goals(user_id: UUID, request: Request) -> GoalsOut:
    """Return the user's goals or the defaults."""
    container: AppContainer = request.app.state.container
    return GoalsOut.from_domain(container.stats_service.get_goals(user_id))


@router.put("/goals", dependencies=[Depends(require_api_token)])
async def put_goals(user_id: UUID, payload: GoalsRequest, request: Request) -> GoalsOut:
    """Replace the user's goals."""
    container: AppContainer = request.app.state.container
    goals = container.stats_service.set_goals(user_id, payload.to_goals())
    return GoalsOut.from_domain(goals)
