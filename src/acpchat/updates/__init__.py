from .dispatcher import UpdateDispatcher, tool_call_block
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
    parse_session_update,
)

__all__ = [
    "UpdateDispatcher",
    "tool_call_block",
    "AgentMessageChunk",
    "AgentThoughtChunk",
    "AvailableCommandsUpdate",
    "CurrentModeUpdate",
    "PlanUpdate",
    "SessionUpdate",
    "ToolCallStarted",
    "ToolCallUpdated",
    "UserMessageChunk",
    "parse_session_update",
]
