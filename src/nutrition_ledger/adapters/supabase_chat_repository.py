"""Supabase repository for chat transcripts."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from nutrition_ledger.domain.messages import ASSISTANT, USER, Message
from nutrition_ledger.services.chat import ChatMessageRepository

_STORED_ROLES = {USER: "user", ASSISTANT: "ai"}


@dataclass
class SupabaseChatRepository(ChatMessageRepository):
    """Supabase implementation for per-day chat messages."""

    client: Client

    def load_messages(self, user_id: UUID, day: date) -> list[Message]:
        """Return a day's messages ordered by id."""
        response = (
            self.client.table("chat_messages")
            .select("timestamp, message, message_type, image_ref, response_to, sent_at")
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .order("timestamp", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def save_messages(self, user_id: UUID, day: date, messages: list[Message]) -> None:
        """Replace the day's rows with the given transcript."""
        (
            self.client.table("chat_messages")
            .delete()
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .execute()
        )
        if not messages:
            return
        self.client.table("chat_messages").insert(
            [
                {
                    "user_id": str(user_id),
                    "date": day.isoformat(),
                    "timestamp": message.id,
                    "message": message.text,
                    "message_type": _STORED_ROLES[message.role],
                    "image_ref": message.image_ref,
                    "response_to": message.response_to,
                    "sent_at": message.timestamp.isoformat(),
                }
                for message in messages
            ]
        ).execute()

    def delete_message(self, user_id: UUID, message_id: int) -> None:
        """Delete a stored message by id."""
        (
            self.client.table("chat_messages")
            .delete()
            .eq("user_id", str(user_id))
            .eq("timestamp", message_id)
            .execute()
        )


def _parse_row(row: dict[str, object]) -> Message:
    message_id = int(row["timestamp"])
    sent_at_raw = row.get("sent_at")
    if isinstance(sent_at_raw, str) and sent_at_raw:
        sent_at = datetime.fromisoformat(sent_at_raw)
    else:
        sent_at = datetime.fromtimestamp(message_id / 1000, tz=UTC)
    response_to = row.get("response_to")
    return Message(
        id=message_id,
        role=ASSISTANT if row.get("message_type") in {"ai", ASSISTANT} else USER,
        text=str(row.get("message") or ""),
        timestamp=sent_at,
        image_ref=row.get("image_ref") or None,
        response_to=int(response_to) if response_to is not None else None,
    )
