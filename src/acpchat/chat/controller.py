"""Chat controller.

The single write surface used by a rendering layer: it subscribes to
snapshots, calls ``send_message`` for user input and forwards every
session update to ``handle_session_update``.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import structlog

from ..errors import UnsupportedUpdateError
from ..messaging.models import SendMessageOptions, SessionContext
from ..messaging.pipeline import SendPipeline
from ..transcript.history import messages_from_history
from ..transcript.models import (
    ChatMessage,
    ChatState,
    ContentBlock,
    ErrorInfo,
    Role,
    StreamingPhase,
)
from ..transcript.store import StateListener, TranscriptStore
from ..updates.dispatcher import UpdateDispatcher
from ..updates.models import SessionUpdate, parse_session_update

logger = structlog.get_logger(__name__)


class ChatController:
    """Owns the chat transcript, the streaming phase and message sending."""

    def __init__(
        self,
        store: TranscriptStore,
        dispatcher: UpdateDispatcher,
        pipeline: SendPipeline
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.pipeline = pipeline

    # Read side

    @property
    def state(self) -> ChatState:
        return self.store.state

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self.store.state.messages

    @property
    def is_sending(self) -> bool:
        return self.store.state.is_sending

    @property
    def streaming_phase(self) -> StreamingPhase:
        return self.store.state.streaming_phase

    @property
    def last_user_message(self) -> str | None:
        return self.store.state.last_user_message

    @property
    def error_info(self) -> ErrorInfo | None:
        return self.store.state.error_info

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Observe every committed snapshot. Returns an unsubscribe callable."""
        return self.store.subscribe(listener)

    # Session

    @property
    def session(self) -> SessionContext:
        return self.pipeline.session

    def set_session(self, session: SessionContext) -> None:
        """Replace the session context used for sending (e.g. after connect)."""
        self.pipeline.session = session

    # Outbound

    async def send_message(
        self,
        text: str,
        options: SendMessageOptions | None = None
    ) -> None:
        await self.pipeline.send_message(text, options)

    # Inbound

    def handle_session_update(self, update: SessionUpdate) -> None:
        self.dispatcher.dispatch(update)

    def handle_raw_update(self, payload: Mapping[str, Any]) -> SessionUpdate:
        """Parse and apply an undecoded session update.

        Raises:
            UnsupportedUpdateError: If the payload has an unknown type
            pydantic.ValidationError: If the payload is malformed
        """
        try:
            update = parse_session_update(payload)
        except UnsupportedUpdateError as e:
            logger.warning("session_update_rejected", update_type=e.update_type)
            raise
        self.dispatcher.dispatch(update)
        return update

    # Transcript operations

    def add_message(self, message: ChatMessage) -> None:
        self.store.append(message)

    def update_last_message(self, content: ContentBlock) -> None:
        """Stream content into the trailing assistant message."""
        self.store.update_tail(Role.ASSISTANT, content)

    def update_user_message(self, content: ContentBlock) -> None:
        """Stream content into the trailing user message."""
        self.store.update_tail(Role.USER, content)

    def update_message(self, tool_call_id: str, content: ContentBlock) -> bool:
        """Merge into an existing tool call only; returns whether it was found."""
        return self.store.merge_tool_call_by_key(tool_call_id, content)

    def upsert_tool_call(self, tool_call_id: str, content: ContentBlock) -> None:
        self.store.upsert_tool_call(tool_call_id, content)

    def clear_messages(self) -> None:
        """Start over: empty transcript, idle phase, no error, no retained text."""
        self.store.reset()

    def set_initial_messages(self, history: Iterable[Mapping[str, Any]]) -> None:
        """Replace the transcript with history returned by a session load."""
        self.store.replace_all(messages_from_history(
            history,
            id_factory=self.store.new_message_id,
            clock=self.store.now,
        ))

    def set_messages_from_local(self, messages: Iterable[ChatMessage]) -> None:
        """Replace the transcript with locally stored messages (resume/fork)."""
        self.store.replace_all(messages)

    def clear_error(self) -> None:
        self.store.clear_error()
