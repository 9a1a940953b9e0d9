"""Transcript module for acpchat.

Module structure (each module hides a design decision):
- models.py: Message and content block representation
- merge.py: How partial tool call updates are folded into a record
- store.py: Ownership, atomic snapshots and observation of the transcript
- history.py: Conversion of loaded session history
"""

from .history import messages_from_history
from .merge import merge_tool_call
from .models import (
    AgentThoughtContent,
    AutoMentionContext,
    ChatMessage,
    ChatState,
    ContentBlock,
    ErrorInfo,
    ImageContent,
    PermissionOption,
    PermissionRequest,
    PlanContent,
    PlanEntry,
    Role,
    StreamingPhase,
    TextContent,
    TextWithContextContent,
    ToolCallContent,
    ToolCallDiff,
    ToolCallItem,
    ToolCallLocation,
    ToolCallOutput,
    ToolCallStatus,
    ToolCallTerminal,
    find_tool_call,
)
from .store import TranscriptStore, default_id_factory

__all__ = [
    "AgentThoughtContent",
    "AutoMentionContext",
    "ChatMessage",
    "ChatState",
    "ContentBlock",
    "ErrorInfo",
    "ImageContent",
    "PermissionOption",
    "PermissionRequest",
    "PlanContent",
    "PlanEntry",
    "Role",
    "StreamingPhase",
    "TextContent",
    "TextWithContextContent",
    "ToolCallContent",
    "ToolCallDiff",
    "ToolCallItem",
    "ToolCallLocation",
    "ToolCallOutput",
    "ToolCallStatus",
    "ToolCallTerminal",
    "TranscriptStore",
    "default_id_factory",
    "find_tool_call",
    "merge_tool_call",
    "messages_from_history",
]
