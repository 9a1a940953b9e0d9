"""
acpchat: Streaming conversation aggregation for agent session updates.

Folds incremental updates emitted by a conversational agent into an ordered
transcript of typed content blocks, tracks the streaming phase, and
mediates outbound message submission. Each subpackage hides one design
decision: transcript representation, update routing, prompt submission.
"""

__version__ = "0.1.0"

from .chat import ChatController, create_chat_controller
from .errors import AcpChatError, UnsupportedUpdateError
from .transcript import (
    ChatMessage,
    ChatState,
    ErrorInfo,
    Role,
    StreamingPhase,
    TranscriptStore,
)
from .updates import SessionUpdate, UpdateDispatcher, parse_session_update

__all__ = [
    "AcpChatError",
    "ChatController",
    "ChatMessage",
    "ChatState",
    "ErrorInfo",
    "Role",
    "SessionUpdate",
    "StreamingPhase",
    "TranscriptStore",
    "UnsupportedUpdateError",
    "UpdateDispatcher",
    "create_chat_controller",
    "parse_session_update",
]
