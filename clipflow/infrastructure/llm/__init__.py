"""LLM services."""

from clipflow.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
)
from clipflow.infrastructure.llm.openai_llm import OpenAILLMService

__all__ = [
    # Base classes
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    # Implementations
    "OpenAILLMService",
]
