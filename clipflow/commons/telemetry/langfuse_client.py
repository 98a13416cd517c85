"""Langfuse integration for tracing LLM analysis calls.

Tracing never affects the pipeline: when Langfuse is disabled or
misbehaves, the helpers log and return None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from langfuse import Langfuse

if TYPE_CHECKING:
    from langfuse.client import StatefulGenerationClient

    from clipflow.commons.settings.models import LangfuseSettings

logger = logging.getLogger(__name__)


@dataclass
class _LangfuseState:
    """Process-wide Langfuse client state."""

    client: Langfuse | None = None
    enabled: bool = False


_state = _LangfuseState()


def init_langfuse(settings: LangfuseSettings) -> None:
    """Create the Langfuse client when tracing is configured.

    Args:
        settings: Langfuse configuration settings.
    """
    if not settings.enabled:
        logger.info("Langfuse is disabled")
        _state.enabled = False
        return

    if not settings.public_key or not settings.secret_key:
        logger.warning("Langfuse keys not configured, tracing disabled")
        _state.enabled = False
        return

    try:
        _state.client = Langfuse(
            public_key=settings.public_key,
            secret_key=settings.secret_key,
            host=settings.host,
            debug=settings.debug,
            sample_rate=settings.sample_rate,
            flush_at=settings.flush_at,
            flush_interval=settings.flush_interval,
        )
    except Exception as e:
        logger.error("Failed to initialize Langfuse", extra={"error": str(e)})
        _state.enabled = False
        return

    _state.enabled = True
    logger.info("Langfuse initialized", extra={"host": settings.host})


def shutdown_langfuse() -> None:
    """Flush pending events and drop the client."""
    client = _state.client
    _state.client = None
    _state.enabled = False
    if client is None:
        return
    try:
        client.flush()
        client.shutdown()
    except Exception as e:
        logger.error("Error shutting down Langfuse", extra={"error": str(e)})


def is_langfuse_enabled() -> bool:
    """Check if Langfuse tracing is active."""
    return _state.enabled and _state.client is not None


def create_llm_generation(
    name: str,
    model: str,
    input_messages: list[dict[str, Any]],
    model_parameters: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
) -> StatefulGenerationClient | None:
    """Open a generation span for one LLM call.

    Args:
        name: Generation name, e.g. "video_analysis".
        model: Model identifier.
        input_messages: Messages sent to the model.
        model_parameters: Temperature, max_tokens and similar.
        metadata: Free-form metadata, e.g. the submission id.

    Returns:
        The generation to close with end_llm_generation, or None.
    """
    if not is_langfuse_enabled():
        return None
    try:
        return _state.client.generation(  # type: ignore[union-attr]
            name=name,
            model=model,
            input=input_messages,
            model_parameters=model_parameters or {},
            metadata=metadata or {},
        )
    except Exception as e:
        logger.error("Error creating LLM generation", extra={"error": str(e)})
        return None


def end_llm_generation(
    generation: StatefulGenerationClient | None,
    output: str | dict[str, Any] | None,
    usage: dict[str, int] | None = None,
    metadata: dict[str, Any] | None = None,
    level: str = "DEFAULT",
    status_message: str | None = None,
) -> None:
    """Close a generation span with its output and token usage."""
    if generation is None:
        return
    try:
        generation.end(
            output=output,
            usage=usage,
            metadata=metadata,
            level=level,
            status_message=status_message,
        )
    except Exception as e:
        logger.error("Error ending LLM generation", extra={"error": str(e)})
