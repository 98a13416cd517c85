"""OpenAI implementation of LLM service."""

from typing import Any

from openai import AsyncAzureOpenAI, AsyncOpenAI
from openai.types.chat import ChatCompletionMessageParam

from clipflow.commons.telemetry import create_llm_generation, end_llm_generation
from clipflow.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
)


class OpenAILLMService(LLMServiceBase):
    """OpenAI implementation of LLM service.

    Talks to OpenAI, Azure OpenAI or any OpenAI-compatible gateway. When
    ``video_input`` is on, video URLs travel as ``video_url`` content parts,
    which multimodal gateways forward to video-capable models. Otherwise
    the URL is appended to the prompt text.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        video_input: bool = True,
        timeout_seconds: float = 300.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize OpenAI LLM client.

        Args:
            api_key: OpenAI API key.
            model: Default model to use.
            base_url: Optional custom API endpoint.
            video_input: Send videos as video_url parts.
            timeout_seconds: Request timeout.
            client: Pre-built client (Azure, tests).
        """
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self._model = model
        self._video_input = video_input

    @classmethod
    def for_azure(
        cls,
        api_key: str,
        endpoint: str,
        api_version: str,
        model: str,
        video_input: bool = True,
        timeout_seconds: float = 300.0,
    ) -> "OpenAILLMService":
        """Build a service backed by an Azure OpenAI deployment."""
        client = AsyncAzureOpenAI(
            api_key=api_key,
            azure_endpoint=endpoint,
            api_version=api_version,
            timeout=timeout_seconds,
        )
        return cls(api_key=api_key, model=model, video_input=video_input, client=client)

    async def generate(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        json_mode: bool = False,
        trace_name: str = "openai_chat_completion",
        trace_metadata: dict[str, str] | None = None,
    ) -> LLMResponse:
        """Generate a completion."""
        use_model = model or self._model
        openai_messages = self._convert_messages(messages)

        kwargs: dict[str, Any] = {
            "model": use_model,
            "messages": openai_messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        # Create Langfuse generation for tracing
        generation = create_llm_generation(
            name=trace_name,
            model=use_model,
            input_messages=[
                {"role": m["role"], "content": str(m.get("content", ""))}
                for m in openai_messages
            ],
            model_parameters={
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            },
            metadata={"provider": "openai", **(trace_metadata or {})},
        )

        try:
            response = await self._client.chat.completions.create(**kwargs)

            choice = response.choices[0]
            usage = response.usage

            result = LLMResponse(
                content=choice.message.content or "",
                finish_reason=choice.finish_reason or "stop",
                usage=LLMUsage(
                    prompt_tokens=usage.prompt_tokens if usage else 0,
                    completion_tokens=usage.completion_tokens if usage else 0,
                    total_tokens=usage.total_tokens if usage else 0,
                ),
                model=response.model,
            )

            end_llm_generation(
                generation=generation,
                output=result.content,
                usage={
                    "prompt_tokens": result.usage.prompt_tokens,
                    "completion_tokens": result.usage.completion_tokens,
                    "total_tokens": result.usage.total_tokens,
                },
                metadata={"finish_reason": result.finish_reason},
            )

            return result

        except Exception as e:
            end_llm_generation(
                generation=generation,
                output=None,
                level="ERROR",
                status_message=str(e),
            )
            raise

    def _convert_messages(
        self,
        messages: list[Message],
    ) -> list[ChatCompletionMessageParam]:
        """Convert our Message format to OpenAI format."""
        result: list[ChatCompletionMessageParam] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                result.append({"role": "system", "content": msg.content})
            elif msg.role == MessageRole.ASSISTANT:
                result.append({"role": "assistant", "content": msg.content})
            elif msg.videos and self._video_input:
                content: list[dict[str, Any]] = [{"type": "text", "text": msg.content}]
                content.extend(
                    {"type": "video_url", "video_url": {"url": url}}
                    for url in msg.videos
                )
                result.append({"role": "user", "content": content})  # type: ignore[misc]
            elif msg.videos:
                links = "\n".join(msg.videos)
                result.append(
                    {"role": "user", "content": f"{msg.content}\n\nVideo: {links}"}
                )
            else:
                result.append({"role": "user", "content": msg.content})

        return result

    @property
    def supports_video(self) -> bool:
        """Whether video URLs are sent to the model as video parts."""
        return self._video_input

    @property
    def supports_json_mode(self) -> bool:
        """Whether this model supports JSON output mode."""
        return True

    @property
    def default_model(self) -> str:
        """Default model identifier."""
        return self._model
