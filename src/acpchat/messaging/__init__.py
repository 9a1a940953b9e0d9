from .base import PromptPreparer, PromptSubmitter
from .models import (
    AuthenticationMethod,
    ImagePromptContent,
    NoteMetadata,
    PreparedPrompt,
    PreparePromptInput,
    PromptCapabilities,
    SendMessageOptions,
    SendPromptInput,
    SendPromptResult,
    SessionContext,
    SettingsContext,
)
from .pipeline import NO_SESSION_ERROR, SEND_FAILED_ERROR, SendPipeline, build_user_content

__all__ = [
    "PromptPreparer",
    "PromptSubmitter",
    "AuthenticationMethod",
    "ImagePromptContent",
    "NoteMetadata",
    "PreparedPrompt",
    "PreparePromptInput",
    "PromptCapabilities",
    "SendMessageOptions",
    "SendPromptInput",
    "SendPromptResult",
    "SessionContext",
    "SettingsContext",
    "NO_SESSION_ERROR",
    "SEND_FAILED_ERROR",
    "SendPipeline",
    "build_user_content",
]
