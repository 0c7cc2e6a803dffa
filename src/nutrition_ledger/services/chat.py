"""Chat transcript service that keeps the daily ledger in step with messages."""

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Literal, Protocol
from uuid import UUID

from nutrition_ledger.domain.errors import (
    ExtractionError,
    ModelCallError,
    PersistenceError,
)
from nutrition_ledger.domain.messages import ASSISTANT, USER, Message
from nutrition_ledger.domain.stats import DailyStats
from nutrition_ledger.services.chat_text import extract_from_chat_text, format_record
from nutrition_ledger.services.estimation import NutritionEstimator
from nutrition_ledger.services.ledger import StatsLedger, StatsListener

RESET_COMMAND = "reset"
RESET_USER_TEXT = "Reset nutrition data for today"
RESET_CONFIRMATION = (
    "Today's nutrition data has been reset. "
    "All calories and macros are now set to zero."
)
IMAGE_ONLY_TEXT = "Food image"
UNSAVED_TEXT = (
    "Changes were not saved because stored data for this day could not be loaded."
)

NoticeLevel = Literal["warning", "error"]

_logger = logging.getLogger(__name__)


class ChatMessageRepository(Protocol):
    """Persistence interface for chat transcripts."""

    def load_messages(self, user_id: UUID, day: date) -> list[Message]:
        """Return a day's messages in insertion order."""

    def save_messages(self, user_id: UUID, day: date, messages: list[Message]) -> None:
        """Replace a day's stored transcript."""

    def delete_message(self, user_id: UUID, message_id: int) -> None:
        """Delete a single stored message."""


class StatsStore(Protocol):
    """Subset of the stats repository used by the chat service."""

    def load_daily_stats(self, user_id: UUID, day: date) -> DailyStats | None:
        """Return the stored stats for a day, if any."""

    def save_daily_stats(self, user_id: UUID, day: date, stats: DailyStats) -> None:
        """Create or replace the stats for a day."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class MessageIdSource:
    """Strictly increasing, millisecond-timestamp-derived message ids."""

    clock: Callable[[], datetime] = _utc_now
    last_id: int = 0

    def next_id(self) -> int:
        """Return an id greater than every id handed out or observed."""
        candidate = int(self.clock().timestamp() * 1000)
        self.last_id = max(candidate, self.last_id + 1)
        return self.last_id

    def observe(self, ids: Iterable[int]) -> None:
        """Make sure future ids sort after ``ids``."""
        self.last_id = max([self.last_id, *ids])


@dataclass(frozen=True)
class Notice:
    """User-visible, non-fatal problem raised while handling a request."""

    level: NoticeLevel
    code: str
    text: str


@dataclass(frozen=True)
class ChatOutcome:
    """State of a day after an operation."""

    messages: tuple[Message, ...]
    stats: DailyStats
    notices: tuple[Notice, ...] = ()
    response: Message | None = None


@dataclass
class ChatDay:
    """Transcript and ledger for one user and day, held while in use.

    A day whose stored state could not be loaded is never written back, so
    the stored rows survive a transient outage.
    """

    user_id: UUID
    day: date
    messages: list[Message]
    ledger: StatsLedger
    loaded: bool = True
    users: int = 0
    unsaved_reported: bool = False


@dataclass
class ChatService:
    """Send, edit, delete and reset chat entries for a day.

    Every change to the stats goes through the day's ``StatsLedger``. Each
    operation reads the day from storage and keeps it in memory only while
    the operation runs, so concurrent calls for the same day share one
    transcript. Stored state is written after each change; storage failures
    become warnings and the in-memory day stays authoritative.
    """

    estimator: NutritionEstimator
    message_repository: ChatMessageRepository
    stats_repository: StatsStore
    ids: MessageIdSource = field(default_factory=MessageIdSource)
    clock: Callable[[], datetime] = _utc_now
    debug: bool = False
    _active_days: dict[tuple[UUID, date], ChatDay] = field(
        default_factory=dict, init=False, repr=False
    )
    _listeners: list[StatsListener] = field(
        default_factory=list, init=False, repr=False
    )

    def on_stats_updated(self, listener: StatsListener) -> None:
        """Subscribe to every reducer applied to any day's stats."""
        self._listeners.append(listener)

    def load_day(self, user_id: UUID, day: date) -> ChatOutcome:
        """Return the stored transcript and stats for a day."""
        notices: list[Notice] = []
        with self._open_day(user_id, day, notices) as chat_day:
            return self._outcome(chat_day, notices)

    async def send(
        self, user_id: UUID, day: date, text: str, image_ref: str | None = None
    ) -> ChatOutcome:
        """Append a user entry, ask the model and record its estimate."""
        cleaned = text.strip()
        if not cleaned and image_ref is None:
            raise ValueError("Message text or image is required")

        notices: list[Notice] = []
        with self._open_day(user_id, day, notices) as chat_day:
            if image_ref is None and cleaned.lower() == RESET_COMMAND:
                return self._reset(chat_day, notices)

            user_message = Message(
                id=self.ids.next_id(),
                role=USER,
                text=cleaned or IMAGE_ONLY_TEXT,
                timestamp=self.clock(),
                image_ref=image_ref,
            )
            chat_day.messages.append(user_message)
            self._save_messages(chat_day, notices)

            response = await self._respond(chat_day, user_message, notices)
            return self._outcome(chat_day, notices, response)

    async def edit(
        self,
        user_id: UUID,
        day: date,
        message_id: int,
        text: str,
        image_ref: str | None = None,
    ) -> ChatOutcome:
        """Replace a user message and re-estimate it.

        The old response is rolled back and removed; the new response is
        appended at the end of the transcript.
        """
        notices: list[Notice] = []
        with self._open_day(user_id, day, notices) as chat_day:
            target = _find_message(chat_day, message_id)
            if not target.is_user:
                raise ValueError("Only user messages can be edited")
            cleaned = text.strip()
            new_image = image_ref or target.image_ref
            if not cleaned and new_image is None:
                raise ValueError("Message text or image is required")

            paired = _paired_response(chat_day.messages, target)
            if paired is not None:
                self._rollback(chat_day, paired)
                chat_day.messages.remove(paired)

            updated = target.edited(cleaned or IMAGE_ONLY_TEXT, new_image)
            chat_day.messages[chat_day.messages.index(target)] = updated
            self._save_messages(chat_day, notices)
            if paired is not None:
                self._delete_stored(chat_day, [paired], notices)
                self._save_stats(chat_day, notices)

            response = await self._respond(chat_day, updated, notices)
            return self._outcome(chat_day, notices, response)

    async def delete(self, user_id: UUID, day: date, message_id: int) -> ChatOutcome:
        """Delete a message, taking a user message's response with it."""
        notices: list[Notice] = []
        with self._open_day(user_id, day, notices) as chat_day:
            target = _find_message(chat_day, message_id)

            removed = [target]
            if target.is_assistant:
                self._rollback(chat_day, target)
            else:
                paired = _paired_response(chat_day.messages, target)
                if paired is not None:
                    self._rollback(chat_day, paired)
                    removed.append(paired)

            removed_ids = {message.id for message in removed}
            chat_day.messages[:] = [
                message
                for message in chat_day.messages
                if message.id not in removed_ids
            ]
            self._save_messages(chat_day, notices)
            self._delete_stored(chat_day, removed, notices)
            if target.is_assistant or len(removed) > 1:
                self._save_stats(chat_day, notices)
            return self._outcome(chat_day, notices)

    def _reset(self, chat_day: ChatDay, notices: list[Notice]) -> ChatOutcome:
        user_message = Message(
            id=self.ids.next_id(),
            role=USER,
            text=RESET_USER_TEXT,
            timestamp=self.clock(),
        )
        chat_day.messages.append(user_message)
        chat_day.ledger.reset()
        confirmation = Message(
            id=self.ids.next_id(),
            role=ASSISTANT,
            text=RESET_CONFIRMATION,
            timestamp=self.clock(),
            response_to=user_message.id,
        )
        chat_day.messages.append(confirmation)
        _logger.info("Reset stats for user %s on %s", chat_day.user_id, chat_day.day)
        self._save_stats(chat_day, notices)
        self._save_messages(chat_day, notices)
        return self._outcome(chat_day, notices, confirmation)

    async def _respond(
        self, chat_day: ChatDay, user_message: Message, notices: list[Notice]
    ) -> Message | None:
        try:
            parsed = await self.estimator.estimate(
                user_message.text, user_message.image_ref
            )
        except ModelCallError as exc:
            notices.append(
                self._notice(
                    "error",
                    "model_call",
                    "Couldn't reach the nutrition model. Please try again.",
                    exc,
                )
            )
            return None
        except ExtractionError as exc:
            _logger.warning("Model reply had no nutrition data: %s", exc)
            notices.append(
                self._notice(
                    "error",
                    "extraction",
                    "Unable to process nutrition information. Please try again.",
                    exc,
                )
            )
            return None

        if parsed.overridden:
            notices.append(
                Notice(
                    level="warning",
                    code="classification_override",
                    text=(
                        f'"{user_message.text}" was logged as food '
                        "with no nutrition values."
                    ),
                )
            )
        response = Message(
            id=self.ids.next_id(),
            role=ASSISTANT,
            text=format_record(parsed.record),
            timestamp=self.clock(),
            image_ref=parsed.record.image_ref,
            response_to=user_message.id,
        )
        chat_day.messages.append(response)
        # Add exactly what a later rollback of this text will subtract.
        chat_day.ledger.add(extract_from_chat_text(response.text))
        self._save_messages(chat_day, notices)
        self._save_stats(chat_day, notices)
        return response

    def _rollback(self, chat_day: ChatDay, message: Message) -> None:
        chat_day.ledger.rollback(extract_from_chat_text(message.text))

    @contextmanager
    def _open_day(
        self, user_id: UUID, day: date, notices: list[Notice]
    ) -> Iterator[ChatDay]:
        """Yield the day for one operation, sharing it with in-flight calls."""
        key = (user_id, day)
        chat_day = self._active_days.get(key)
        if chat_day is None:
            chat_day = self._load(user_id, day, notices)
            self._active_days[key] = chat_day
        chat_day.users += 1
        try:
            yield chat_day
        finally:
            chat_day.users -= 1
            if chat_day.users == 0 and self._active_days.get(key) is chat_day:
                del self._active_days[key]

    def _load(self, user_id: UUID, day: date, notices: list[Notice]) -> ChatDay:
        messages: list[Message] = []
        stats = DailyStats.zero()
        loaded = True
        try:
            messages = list(self.message_repository.load_messages(user_id, day))
        except Exception as exc:
            loaded = False
            notices.append(self._persistence_notice("load chat messages", exc))
        try:
            stats = self.stats_repository.load_daily_stats(user_id, day) or stats
        except Exception as exc:
            loaded = False
            notices.append(self._persistence_notice("load daily stats", exc))

        self.ids.observe(message.id for message in messages)
        return ChatDay(
            user_id=user_id,
            day=day,
            messages=messages,
            ledger=StatsLedger(stats=stats, listeners=self._listeners),
            loaded=loaded,
        )

    def _can_persist(self, chat_day: ChatDay, notices: list[Notice]) -> bool:
        if chat_day.loaded:
            return True
        if not chat_day.unsaved_reported:
            chat_day.unsaved_reported = True
            _logger.warning(
                "Not saving %s for user %s: stored state was not loaded",
                chat_day.day,
                chat_day.user_id,
            )
            notices.append(
                Notice(level="warning", code="persistence", text=UNSAVED_TEXT)
            )
        return False

    def _save_messages(self, chat_day: ChatDay, notices: list[Notice]) -> None:
        if not self._can_persist(chat_day, notices):
            return
        try:
            self.message_repository.save_messages(
                chat_day.user_id, chat_day.day, list(chat_day.messages)
            )
        except Exception as exc:
            notices.append(self._persistence_notice("save chat messages", exc))

    def _save_stats(self, chat_day: ChatDay, notices: list[Notice]) -> None:
        if not self._can_persist(chat_day, notices):
            return
        try:
            self.stats_repository.save_daily_stats(
                chat_day.user_id, chat_day.day, chat_day.ledger.stats
            )
        except Exception as exc:
            notices.append(self._persistence_notice("save daily stats", exc))

    def _delete_stored(
        self, chat_day: ChatDay, messages: list[Message], notices: list[Notice]
    ) -> None:
        if not self._can_persist(chat_day, notices):
            return
        for message in messages:
            try:
                self.message_repository.delete_message(chat_day.user_id, message.id)
            except Exception as exc:
                notices.append(self._persistence_notice("delete message", exc))

    def _persistence_notice(self, action: str, exc: Exception) -> Notice:
        error = PersistenceError(f"Failed to {action}")
        _logger.warning("%s: %s", error, exc)
        return self._notice("warning", "persistence", f"{error}.", exc)

    def _notice(
        self, level: NoticeLevel, code: str, text: str, exc: Exception
    ) -> Notice:
        if self.debug:
            detail = f"{type(exc).__name__}: {exc}".strip()
            text = f"{text} (debug: {detail})"
        return Notice(level=level, code=code, text=text)

    def _outcome(
        self,
        chat_day: ChatDay,
        notices: list[Notice],
        response: Message | None = None,
    ) -> ChatOutcome:
        return ChatOutcome(
            messages=tuple(chat_day.messages),
            stats=chat_day.ledger.stats,
            notices=tuple(notices),
            response=response,
        )


def _find_message(chat_day: ChatDay, message_id: int) -> Message:
    for message in chat_day.messages:
        if message.id == message_id:
            return message
    raise LookupError(f"Message {message_id} not found")


def _paired_response(messages: list[Message], user_message: Message) -> Message | None:
    """Return the assistant message answering ``user_message``, if any."""
    for message in messages:
        if message.is_assistant and message.response_to == user_message.id:
            return message
    index = messages.index(user_message)
    if index + 1 < len(messages):
        following = messages[index + 1]
        if following.is_assistant and following.response_to is None:
            return following
    return None
