"""Data models for the chat transcript.

These models define the message and content block shapes shared by the
store, the update dispatcher and the send pipeline. All of them are frozen:
a mutation always produces a new object, so a published snapshot can never
change underneath a reader.
"""

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FrozenModel(BaseModel):
    """Immutable model using camelCase aliases on the wire."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Role(str, Enum):
    """Speaker of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class StreamingPhase(str, Enum):
    """What kind of activity is currently streaming."""

    IDLE = "idle"                            # No active streaming
    WAITING = "waiting"                      # Prompt sent, no chunk yet
    THINKING = "thinking"                    # Receiving thought chunks
    RESPONDING = "responding"                # Receiving message/tool chunks
    AWAITING_APPROVAL = "awaiting_approval"  # Tool call blocked on permission


class ToolCallStatus(str, Enum):
    """Lifecycle status of a tool call."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


# Tool call sub-items

class ToolCallOutput(FrozenModel):
    """Regular output produced by a tool call (text, resource links, ...)."""

    type: Literal["content"] = "content"
    content: dict[str, Any] = Field(description="Opaque content payload")


class ToolCallDiff(FrozenModel):
    """Full current-state snapshot of a file edit."""

    type: Literal["diff"] = "diff"
    path: str
    old_text: str | None = None
    new_text: str


class ToolCallTerminal(FrozenModel):
    """Reference to a terminal attached to a tool call."""

    type: Literal["terminal"] = "terminal"
    terminal_id: str


ToolCallItem = Annotated[
    ToolCallOutput | ToolCallDiff | ToolCallTerminal,
    Field(discriminator="type"),
]


class ToolCallLocation(FrozenModel):
    """File location a tool call is working on."""

    path: str
    line: int | None = None


class PermissionOption(FrozenModel):
    """One choice offered to the user by a permission request."""

    option_id: str
    name: str
    kind: str


class PermissionRequest(FrozenModel):
    """A pending permission decision attached to a tool call."""

    request_id: str
    options: tuple[PermissionOption, ...] = ()
    selected_option_id: str | None = None
    is_cancelled: bool | None = None


class AutoMentionContext(FrozenModel):
    """Note context automatically attached to a user message."""

    note_name: str
    note_path: str
    selection: dict[str, int] | None = None


class PlanEntry(FrozenModel):
    """A single entry of an agent execution plan."""

    content: str
    priority: str = "medium"
    status: str = "pending"


# Content blocks

class TextContent(FrozenModel):
    type: Literal["text"] = "text"
    text: str


class AgentThoughtContent(FrozenModel):
    type: Literal["agent_thought"] = "agent_thought"
    text: str


class TextWithContextContent(FrozenModel):
    type: Literal["text_with_context"] = "text_with_context"
    text: str
    auto_mention_context: AutoMentionContext


class ImageContent(FrozenModel):
    type: Literal["image"] = "image"
    data: str = Field(description="Base64 encoded image data")
    mime_type: str


class PlanContent(FrozenModel):
    type: Literal["plan"] = "plan"
    entries: tuple[PlanEntry, ...] = ()


class ToolCallContent(FrozenModel):
    """A long-lived, identity-keyed tool invocation record.

    Partial updates are built with only the fields the agent actually sent;
    ``model_fields_set`` tells the merge engine which fields are present.
    """

    type: Literal["tool_call"] = "tool_call"
    tool_call_id: str
    title: str | None = None
    status: ToolCallStatus = ToolCallStatus.PENDING
    kind: str | None = None
    content: tuple[ToolCallItem, ...] | None = None
    locations: tuple[ToolCallLocation, ...] | None = None
    permission_request: PermissionRequest | None = None


ContentBlock = Annotated[
    TextContent
    | AgentThoughtContent
    | TextWithContextContent
    | ImageContent
    | PlanContent
    | ToolCallContent,
    Field(discriminator="type"),
]

# Block types whose streaming chunks are concatenated instead of replaced
STREAMED_TEXT_TYPES = frozenset({"text", "agent_thought"})


class ChatMessage(FrozenModel):
    """A message in the conversation transcript."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: Role
    content: tuple[ContentBlock, ...] = ()
    timestamp: datetime = Field(default_factory=datetime.now)

    def tool_calls(self) -> list[ToolCallContent]:
        """Return the tool call blocks of this message."""
        return [c for c in self.content if isinstance(c, ToolCallContent)]


class ErrorInfo(FrozenModel):
    """User-visible error produced by a chat operation."""

    title: str
    message: str
    suggestion: str | None = None


class ChatState(FrozenModel):
    """Atomic snapshot of everything the transcript store owns."""

    messages: tuple[ChatMessage, ...] = ()
    is_sending: bool = False
    streaming_phase: StreamingPhase = StreamingPhase.IDLE
    last_user_message: str | None = None
    error_info: ErrorInfo | None = None


def find_tool_call(
    messages: Sequence[ChatMessage],
    tool_call_id: str
) -> ToolCallContent | None:
    """Find a tool call block anywhere in the transcript."""
    for message in messages:
        for block in message.content:
            if isinstance(block, ToolCallContent) and block.tool_call_id == tool_call_id:
                return block
    return None
