"""Conversion of loaded session history into transcript messages."""

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from .models import ChatMessage, Role, TextContent
from .store import Clock, IdFactory, default_id_factory


def _parse_timestamp(value: Any, clock: Clock) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass  # Unparseable timestamps fall back to the clock
    return clock()


def messages_from_history(
    history: Iterable[Mapping[str, Any]],
    id_factory: IdFactory | None = None,
    clock: Clock | None = None
) -> list[ChatMessage]:
    """Convert conversation history returned by a session load.

    Each entry looks like ``{"role": ..., "content": [{"type": "text",
    "text": ...}], "timestamp": "<iso>"}``. Every content item is kept as a
    text block; messages get fresh identifiers.

    Args:
        history: Entries of the loaded conversation
        id_factory: Identifier generator (default: random UUID)
        clock: Time source used when an entry has no usable timestamp

    Returns:
        Messages in history order

    Raises:
        ValueError: If an entry has an unknown role
    """
    id_factory = id_factory or default_id_factory
    clock = clock or datetime.now

    messages = []
    for entry in history:
        content = tuple(
            TextContent(text=item.get("text", ""))
            for item in entry.get("content", [])
        )
        messages.append(ChatMessage(
            id=id_factory(),
            role=Role(entry["role"]),
            content=content,
            timestamp=_parse_timestamp(entry.get("timestamp"), clock),
        ))
    return messages
