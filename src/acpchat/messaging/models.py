"""Data models exchanged with the prompt collaborators.

The prompt preparer and submitter are external; these models only pin down
the fields the send pipeline reads or supplies.
"""

from typing import Any

from pydantic import Field

from ..transcript.models import AutoMentionContext, ErrorInfo, FrozenModel


class ImagePromptContent(FrozenModel):
    """An image attached to a user prompt."""

    data: str = Field(description="Base64 encoded image data")
    mime_type: str


class NoteMetadata(FrozenModel):
    """The note currently open in the editor, used for auto-mention."""

    path: str
    name: str
    extension: str = "md"
    selection: dict[str, int] | None = None


class AuthenticationMethod(FrozenModel):
    """An authentication method advertised by the agent."""

    id: str
    name: str
    description: str | None = None


class PromptCapabilities(FrozenModel):
    """Prompt content types the agent declared during initialization."""

    image: bool = False
    audio: bool = False
    embedded_context: bool = False


class SessionContext(FrozenModel):
    """Session information required to send a prompt."""

    session_id: str | None = None
    auth_methods: tuple[AuthenticationMethod, ...] = ()
    prompt_capabilities: PromptCapabilities | None = None


class SettingsContext(FrozenModel):
    """Settings used while preparing a prompt.

    ``convert_to_wsl`` is an explicit input; it is never derived from the
    host platform.
    """

    convert_to_wsl: bool = False
    max_note_length: int = Field(default=10000, ge=1)
    max_selection_length: int = Field(default=10000, ge=1)


class SendMessageOptions(FrozenModel):
    """Per-message options supplied by the caller of ``send_message``."""

    active_note: NoteMetadata | None = None
    vault_base_path: str = ""
    is_auto_mention_disabled: bool | None = None
    images: tuple[ImagePromptContent, ...] = ()


class PreparePromptInput(FrozenModel):
    """Input of the prompt preparer."""

    message: str
    images: tuple[ImagePromptContent, ...] | None = None
    active_note: NoteMetadata | None = None
    vault_base_path: str = ""
    is_auto_mention_disabled: bool | None = None
    convert_to_wsl: bool = False
    supports_embedded_context: bool = False
    max_note_length: int
    max_selection_length: int


class PreparedPrompt(FrozenModel):
    """Output of the prompt preparer.

    Attributes:
        agent_content: Content blocks sent to the agent
        display_content: Content blocks shown to the user
        auto_mention_context: Note context for display only
    """

    agent_content: tuple[dict[str, Any], ...] = ()
    display_content: tuple[dict[str, Any], ...] = ()
    auto_mention_context: AutoMentionContext | None = None


class SendPromptInput(FrozenModel):
    """Input of the prompt submitter."""

    session_id: str
    agent_content: tuple[dict[str, Any], ...] = ()
    display_content: tuple[dict[str, Any], ...] = ()
    auth_methods: tuple[AuthenticationMethod, ...] = ()


class SendPromptResult(FrozenModel):
    """Outcome reported by the prompt submitter."""

    success: bool
    error: ErrorInfo | None = None
