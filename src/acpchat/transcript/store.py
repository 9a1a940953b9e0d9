"""Transcript store.

Owns the ordered message list together with the derived chat state
(sending flag, streaming phase, last user message, error). Every mutation
reads the current snapshot and commits a new one under a lock, and
subscribers only ever receive complete snapshots.
"""

import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from uuid import uuid4

import structlog

from .merge import merge_tool_call
from .models import (
    STREAMED_TEXT_TYPES,
    ChatMessage,
    ChatState,
    ContentBlock,
    ErrorInfo,
    Role,
    StreamingPhase,
    ToolCallContent,
)

logger = structlog.get_logger(__name__)

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]
StateListener = Callable[[ChatState], None]


def default_id_factory() -> str:
    """Generate a random message identifier."""
    return str(uuid4())


def _merge_block(
    blocks: tuple[ContentBlock, ...],
    incoming: ContentBlock
) -> tuple[ContentBlock, ...]:
    """Fold a streamed block into the single slot for its type."""
    for index, block in enumerate(blocks):
        if block.type != incoming.type:
            continue
        if incoming.type in STREAMED_TEXT_TYPES:
            incoming = block.model_copy(update={"text": block.text + incoming.text})
        return blocks[:index] + (incoming,) + blocks[index + 1:]
    return blocks + (incoming,)


def _merge_tool_call_into(
    messages: tuple[ChatMessage, ...],
    tool_call_id: str,
    update: ToolCallContent
) -> tuple[tuple[ChatMessage, ...], bool]:
    """Merge ``update`` into the matching tool call of any message.

    Messages that do not hold the tool call are kept as-is.
    """
    found = False
    merged_messages = []
    for message in messages:
        blocks = []
        touched = False
        for block in message.content:
            if isinstance(block, ToolCallContent) and block.tool_call_id == tool_call_id:
                block = merge_tool_call(block, update)
                touched = True
            blocks.append(block)
        if touched:
            found = True
            message = message.model_copy(update={"content": tuple(blocks)})
        merged_messages.append(message)
    return tuple(merged_messages), found


def _with_phase(changes: dict, phase: StreamingPhase | None) -> dict:
    if phase is not None:
        changes["streaming_phase"] = phase
    return changes


def _cleared(messages: tuple[ChatMessage, ...]) -> dict:
    return {
        "messages": messages,
        "is_sending": False,
        "streaming_phase": StreamingPhase.IDLE,
        "last_user_message": None,
        "error_info": None,
    }


class TranscriptStore:
    """Observable, copy-on-write store for the chat transcript.

    Usage:
        store = TranscriptStore()
        unsubscribe = store.subscribe(render)
        store.update_tail(Role.ASSISTANT, TextContent(text="Hello "))
        store.update_tail(Role.ASSISTANT, TextContent(text="world"))
        store.messages[-1].content[0].text  # "Hello world"
    """

    def __init__(
        self,
        id_factory: IdFactory | None = None,
        clock: Clock | None = None
    ) -> None:
        self._id_factory = id_factory or default_id_factory
        self._clock = clock or datetime.now
        self._state = ChatState()
        self._listeners: list[StateListener] = []
        self._lock = threading.RLock()

    @property
    def state(self) -> ChatState:
        """Current snapshot."""
        return self._state

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._state.messages

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with every committed snapshot.

        Returns:
            A callable removing the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def new_message_id(self) -> str:
        return self._id_factory()

    def now(self) -> datetime:
        return self._clock()

    def new_message(self, role: Role, content: Iterable[ContentBlock]) -> ChatMessage:
        """Build a message with a generated id and the current time."""
        return ChatMessage(
            id=self.new_message_id(),
            role=role,
            content=tuple(content),
            timestamp=self.now(),
        )

    def _transact(self, apply: Callable[[ChatState], dict | None]) -> ChatState:
        """Compute changes from the current snapshot and commit them atomically."""
        with self._lock:
            changes = apply(self._state)
            if changes is None:
                return self._state
            self._state = self._state.model_copy(update=changes)
            self._notify(self._state)
            return self._state

    def _notify(self, state: ChatState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error("transcript_listener_failed", error=str(e))

    # Message operations

    def append(self, message: ChatMessage) -> None:
        """Add a message to the end of the transcript."""
        self._transact(lambda state: {"messages": state.messages + (message,)})

    def update_tail(
        self,
        role: Role,
        content: ContentBlock,
        phase: StreamingPhase | None = None
    ) -> None:
        """Merge streamed content into the tail message of ``role``.

        Text and thought chunks are concatenated onto the existing block of
        the same type; any other block type replaces its slot. A new message
        is started when the tail belongs to the other speaker. When ``phase``
        is given it is committed in the same snapshot.
        """
        if isinstance(content, ToolCallContent):
            # tool calls are keyed by id, never by tail slot
            self.upsert_tool_call(content.tool_call_id, content, phase)
            return

        def apply(state: ChatState) -> dict:
            messages = state.messages
            if not messages or messages[-1].role != role:
                messages = messages + (self.new_message(role, [content]),)
            else:
                tail = messages[-1]
                tail = tail.model_copy(update={"content": _merge_block(tail.content, content)})
                messages = messages[:-1] + (tail,)
            return _with_phase({"messages": messages}, phase)

        self._transact(apply)

    def merge_tool_call_by_key(self, tool_call_id: str, update: ContentBlock) -> bool:
        """Merge an update into an existing tool call anywhere in the transcript.

        Returns:
            True if a tool call with ``tool_call_id`` was found
        """
        if not isinstance(update, ToolCallContent):
            return False

        found = False

        def apply(state: ChatState) -> dict | None:
            nonlocal found
            messages, found = _merge_tool_call_into(state.messages, tool_call_id, update)
            return {"messages": messages} if found else None

        self._transact(apply)
        return found

    def upsert_tool_call(
        self,
        tool_call_id: str,
        update: ContentBlock,
        phase: StreamingPhase | None = None
    ) -> None:
        """Merge into an existing tool call, or append it as a new assistant message.

        When ``phase`` is given it is committed in the same snapshot.
        """
        if not isinstance(update, ToolCallContent):
            logger.debug("tool_call_upsert_ignored", update_type=getattr(update, "type", None))
            return

        def apply(state: ChatState) -> dict:
            messages, found = _merge_tool_call_into(state.messages, tool_call_id, update)
            if not found:
                messages = messages + (self.new_message(Role.ASSISTANT, [update]),)
            return _with_phase({"messages": messages}, phase)

        self._transact(apply)

    def reset(self) -> None:
        """Clear the transcript and all derived state."""
        self._transact(lambda state: _cleared(()))

    def replace_all(self, messages: Iterable[ChatMessage]) -> None:
        """Substitute the whole transcript (history load, resume, fork)."""
        replacement = tuple(messages)
        self._transact(lambda state: _cleared(replacement))

    # Derived state operations

    def set_phase(self, phase: StreamingPhase) -> None:
        self._transact(lambda state: {"streaming_phase": phase})

    def set_error(self, error: ErrorInfo | None) -> None:
        self._transact(lambda state: {"error_info": error})

    def clear_error(self) -> None:
        self.set_error(None)

    def begin_send(self, text: str, message: ChatMessage | None = None) -> None:
        """Mark a prompt as in flight, keeping its raw text for retry.

        ``message`` (the optimistic user message) is appended in the same
        snapshot. Any error left by an earlier round trip is cleared.
        """
        def apply(state: ChatState) -> dict:
            messages = state.messages
            if message is not None:
                messages = messages + (message,)
            return {
                "messages": messages,
                "is_sending": True,
                "streaming_phase": StreamingPhase.WAITING,
                "last_user_message": text,
                "error_info": None,
            }

        self._transact(apply)

    def finish_send(
        self,
        error: ErrorInfo | None = None,
        text: str | None = None
    ) -> None:
        """Close the send round trip.

        On success the retained user text and any error are cleared. On
        failure the error is recorded and the text is kept so the user can
        retry; ``text`` replaces the retained text when the round trip failed
        before ``begin_send``.
        """
        def apply(state: ChatState) -> dict:
            changes: dict = {
                "is_sending": False,
                "streaming_phase": StreamingPhase.IDLE,
            }
            if error is None:
                changes["last_user_message"] = None
                changes["error_info"] = None
            else:
                changes["error_info"] = error
                if text is not None:
                    changes["last_user_message"] = text
            return changes

        self._transact(apply)
