"""
mcp-chat - chat with a language model that calls tools hosted by an MCP server.
"""

from .backend import (
    AnthropicLLM,
    GeminiLLM,
    ModelBackend,
    OpenAILLM,
    create_backend,
)
from .errors import (
    BackendError,
    MCPChatError,
    ToolHostConnectionError,
    ToolInvocationError,
)
from .orchestrator import APOLOGY, Orchestrator, QueryResult
from .providers import Provider, get_api_key
from .response import ChatResponse
from .session import SessionManager
from .settings import Settings
from .types import (
    AssistantMessage,
    Message,
    ToolCallRequest,
    ToolCallResult,
    ToolMessage,
    ToolSpec,
    UserMessage,
)

__version__ = "0.1.0"

__all__ = [
    "ModelBackend",
    "OpenAILLM",
    "AnthropicLLM",
    "GeminiLLM",
    "create_backend",
    "ChatResponse",
    "MCPChatError",
    "BackendError",
    "ToolHostConnectionError",
    "ToolInvocationError",
    "Orchestrator",
    "QueryResult",
    "APOLOGY",
    "Provider",
    "get_api_key",
    "SessionManager",
    "Settings",
    "Message",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolSpec",
]
