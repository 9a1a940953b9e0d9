from .controller import ChatController
from .factory import create_chat_controller

__all__ = [
    "ChatController",
    "create_chat_controller",
]
