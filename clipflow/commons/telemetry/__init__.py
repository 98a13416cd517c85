"""Telemetry module - logging and LLM tracing."""

from clipflow.commons.telemetry.decorators import LogContext, timed
from clipflow.commons.telemetry.langfuse_client import (
    create_llm_generation,
    end_llm_generation,
    init_langfuse,
    is_langfuse_enabled,
    shutdown_langfuse,
)
from clipflow.commons.telemetry.logger import (
    JsonFormatter,
    TextFormatter,
    build_formatter,
    clear_log_context,
    configure_logging,
    get_correlation_id,
    get_log_context,
    get_logger,
    set_correlation_id,
    set_log_context,
)

__all__ = [
    # Decorators
    "timed",
    "LogContext",
    # Logger
    "get_logger",
    "configure_logging",
    "build_formatter",
    "JsonFormatter",
    "TextFormatter",
    # Correlation ID
    "get_correlation_id",
    "set_correlation_id",
    # Log Context
    "get_log_context",
    "set_log_context",
    "clear_log_context",
    # Langfuse
    "init_langfuse",
    "shutdown_langfuse",
    "is_langfuse_enabled",
    "create_llm_generation",
    "end_llm_generation",
]
