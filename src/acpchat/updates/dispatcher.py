"""Update dispatcher.

Routes each session update to a transcript mutation and derives the
streaming phase from it.
"""

import structlog

from ..errors import UnsupportedUpdateError
from ..transcript.models import (
    AgentThoughtContent,
    PlanContent,
    Role,
    StreamingPhase,
    TextContent,
    ToolCallContent,
)
from ..transcript.store import TranscriptStore
from .models import (
    AgentMessageChunk,
    AgentThoughtChunk,
    AvailableCommandsUpdate,
    CurrentModeUpdate,
    PlanUpdate,
    SessionUpdate,
    ToolCallStarted,
    ToolCallUpdated,
    UserMessageChunk,
)

logger = structlog.get_logger(__name__)

_TOOL_CALL_FIELDS = ("title", "status", "kind", "content", "locations", "permission_request")


def tool_call_block(update: ToolCallStarted | ToolCallUpdated) -> ToolCallContent:
    """Build a tool call block carrying only the fields the update set.

    Omitted fields stay unset so merging never clobbers an existing record.
    A missing or null status is treated as omitted; new records default to
    pending.
    """
    present = update.model_fields_set
    fields = {
        name: getattr(update, name)
        for name in _TOOL_CALL_FIELDS
        if name in present
    }
    if fields.get("status", "") is None:
        del fields["status"]
    return ToolCallContent(tool_call_id=update.tool_call_id, **fields)


class UpdateDispatcher:
    """Applies session updates to a transcript store."""

    def __init__(self, store: TranscriptStore) -> None:
        self.store = store

    def dispatch(self, update: SessionUpdate) -> None:
        """Apply a single session update.

        Args:
            update: A parsed session update

        Raises:
            UnsupportedUpdateError: If the update type is not routed here
        """
        logger.debug("session_update", update_type=getattr(update, "type", None))

        if isinstance(update, AgentMessageChunk):
            self.store.update_tail(
                Role.ASSISTANT, TextContent(text=update.text), StreamingPhase.RESPONDING
            )

        elif isinstance(update, AgentThoughtChunk):
            self.store.update_tail(
                Role.ASSISTANT, AgentThoughtContent(text=update.text), StreamingPhase.THINKING
            )

        elif isinstance(update, UserMessageChunk):
            self.store.update_tail(Role.USER, TextContent(text=update.text))

        elif isinstance(update, (ToolCallStarted, ToolCallUpdated)):
            phase = (
                StreamingPhase.AWAITING_APPROVAL
                if update.permission_request is not None
                else StreamingPhase.RESPONDING
            )
            self.store.upsert_tool_call(update.tool_call_id, tool_call_block(update), phase)

        elif isinstance(update, PlanUpdate):
            self.store.update_tail(Role.ASSISTANT, PlanContent(entries=update.entries))

        elif isinstance(update, (AvailableCommandsUpdate, CurrentModeUpdate)):
            # Session-level updates belong to the session controller
            logger.debug("session_update_ignored", update_type=update.type)

        else:
            logger.warning("session_update_rejected", update_type=getattr(update, "type", None))
            raise UnsupportedUpdateError(getattr(update, "type", None))
