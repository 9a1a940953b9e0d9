"""Session update protocol consumed by the dispatcher.

One model per update type an agent may emit, discriminated on ``type``.
Payloads use the camelCase field names of the Agent Client Protocol.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter

from ..errors import UnsupportedUpdateError
from ..transcript.models import (
    FrozenModel,
    PermissionRequest,
    PlanEntry,
    ToolCallItem,
    ToolCallLocation,
    ToolCallStatus,
)


class AgentMessageChunk(FrozenModel):
    """Chunk of the agent's visible reply."""

    type: Literal["agent_message_chunk"] = "agent_message_chunk"
    text: str


class AgentThoughtChunk(FrozenModel):
    """Chunk of the agent's reasoning."""

    type: Literal["agent_thought_chunk"] = "agent_thought_chunk"
    text: str


class UserMessageChunk(FrozenModel):
    """Chunk of a user message, replayed while a session is loaded."""

    type: Literal["user_message_chunk"] = "user_message_chunk"
    text: str


class _ToolCallFields(FrozenModel):
    tool_call_id: str
    title: str | None = None
    status: ToolCallStatus | None = None
    kind: str | None = None
    content: tuple[ToolCallItem, ...] | None = None
    locations: tuple[ToolCallLocation, ...] | None = None
    permission_request: PermissionRequest | None = None


class ToolCallStarted(_ToolCallFields):
    """A new tool call reported by the agent."""

    type: Literal["tool_call"] = "tool_call"


class ToolCallUpdated(_ToolCallFields):
    """Progress on a tool call; only the changed fields are sent."""

    type: Literal["tool_call_update"] = "tool_call_update"


class PlanUpdate(FrozenModel):
    """The agent's current execution plan."""

    type: Literal["plan"] = "plan"
    entries: tuple[PlanEntry, ...] = ()


class AvailableCommandsUpdate(FrozenModel):
    """Slash commands offered by the agent (session level)."""

    type: Literal["available_commands_update"] = "available_commands_update"
    commands: tuple[dict[str, Any], ...] = ()


class CurrentModeUpdate(FrozenModel):
    """The agent switched its operating mode (session level)."""

    type: Literal["current_mode_update"] = "current_mode_update"
    current_mode_id: str


SessionUpdate = Annotated[
    AgentMessageChunk
    | AgentThoughtChunk
    | UserMessageChunk
    | ToolCallStarted
    | ToolCallUpdated
    | PlanUpdate
    | AvailableCommandsUpdate
    | CurrentModeUpdate,
    Field(discriminator="type"),
]

SESSION_UPDATE_TYPES = frozenset({
    "agent_message_chunk",
    "agent_thought_chunk",
    "user_message_chunk",
    "tool_call",
    "tool_call_update",
    "plan",
    "available_commands_update",
    "current_mode_update",
})

_session_update_adapter: TypeAdapter[SessionUpdate] = TypeAdapter(SessionUpdate)


def parse_session_update(payload: Mapping[str, Any]) -> SessionUpdate:
    """Parse a raw session update payload.

    Args:
        payload: Decoded update, e.g. ``{"type": "agent_message_chunk", "text": "Hi"}``

    Returns:
        The typed session update

    Raises:
        UnsupportedUpdateError: If ``type`` is missing or not a known update type
        pydantic.ValidationError: If the payload does not match its type
    """
    update_type = payload.get("type") if isinstance(payload, Mapping) else None
    if not isinstance(update_type, str) or update_type not in SESSION_UPDATE_TYPES:
        raise UnsupportedUpdateError(update_type)
    return _session_update_adapter.validate_python(payload)
