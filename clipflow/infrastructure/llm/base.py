"""Abstract base class for LLM services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class MessageRole(str, Enum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A message in the conversation."""

    role: MessageRole
    content: str
    videos: list[str] | None = None  # Public URLs for video-capable models


@dataclass
class LLMUsage:
    """Token usage statistics."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class LLMResponse:
    """Response from LLM generation."""

    content: str
    finish_reason: str
    usage: LLMUsage
    model: str


class LLMServiceBase(ABC):
    """Abstract base class for LLM services.

    Implementations should handle:
    - OpenAI and OpenAI-compatible multimodal endpoints
    - Azure OpenAI
    """

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        json_mode: bool = False,
        trace_name: str = "chat_completion",
        trace_metadata: dict[str, str] | None = None,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: List of conversation messages.
            model: Optional model override.
            temperature: Sampling temperature (0.0-2.0).
            max_tokens: Maximum tokens to generate.
            json_mode: Whether to force JSON output.
            trace_name: Name of the tracing generation.
            trace_metadata: Extra metadata for the tracing generation.

        Returns:
            LLM response with content and usage.
        """

    @property
    @abstractmethod
    def supports_video(self) -> bool:
        """Whether video URLs are sent to the model as video parts."""

    @property
    @abstractmethod
    def supports_json_mode(self) -> bool:
        """Whether this model supports JSON output mode."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Default model identifier."""
