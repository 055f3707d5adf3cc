from .tool import (
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
    ToolOutput,
    ToolSpec,
)
from .chat import AssistantMessage, Conversation, Message, ToolMessage, UserMessage

__all__ = [
    "ToolDescriptor",
    "ToolSpec",
    "ToolCallRequest",
    "ToolOutput",
    "ToolCallResult",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "Message",
    "Conversation",
]
