"""FastAPI dependency injection for services and settings."""

import asyncio
import contextlib
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends

from clipflow.application.services import (
    AnalyzerDispatcher,
    ContentAddressedStore,
    MediaRetriever,
    PipelineOrchestrator,
    SessionStore,
    ShareInputResolver,
)
from clipflow.commons.settings.loader import get_settings as _load_settings
from clipflow.commons.settings.models import Settings
from clipflow.commons.telemetry import init_langfuse, shutdown_langfuse
from clipflow.domain.models import AnalysisContext
from clipflow.domain.value_objects import RetryPolicy
from clipflow.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers."""
    return get_factory(settings)


def build_share_resolver(
    factory: InfrastructureFactory, settings: Settings
) -> ShareInputResolver:
    """Create the share input resolver from configuration."""
    return ShareInputResolver(
        lookup=factory.get_share_resolver(),
        allow_unknown_sources=settings.resolver.allow_unknown_sources,
    )


def build_retriever(
    factory: InfrastructureFactory, settings: Settings
) -> MediaRetriever:
    """Create the media retriever from configuration."""
    processing = settings.processing
    return MediaRetriever(
        client=factory.get_download_client(),
        staging_dir=Path(processing.staging_dir),
        progress_interval=settings.retriever.progress_interval_seconds,
        chunk_size=settings.retriever.chunk_size,
        max_size_bytes=processing.max_video_size_mb * 1024 * 1024,
    )


def build_download_policy(settings: Settings) -> RetryPolicy:
    """Create the download retry policy from configuration."""
    processing = settings.processing
    return RetryPolicy(
        max_attempts=processing.retry_attempts,
        base_delay_seconds=processing.retry_base_delay_seconds,
        backoff_multiplier=processing.retry_backoff_multiplier,
    )


def build_orchestrator(
    factory: InfrastructureFactory,
    settings: Settings,
    sessions: SessionStore | None = None,
) -> PipelineOrchestrator:
    """Wire the pipeline orchestrator and its stage services.

    Args:
        factory: Infrastructure factory.
        settings: Application settings.
        sessions: Session table to use. A new one is created when omitted.

    Returns:
        Configured orchestrator.
    """
    processing = settings.processing
    analysis = settings.analysis

    store = ContentAddressedStore(
        blob_storage=factory.get_blob_storage(),
        bucket=settings.blob_storage.buckets.videos,
        key_prefix=settings.blob_storage.key_prefix,
        scan_limit=settings.blob_storage.dedup_scan_limit,
    )
    dispatcher = AnalyzerDispatcher(
        analyzer=factory.get_video_analyzer(),
        policy=RetryPolicy.fixed(analysis.retry_attempts, analysis.retry_delay_seconds),
        limit_minutes=analysis.max_duration_minutes,
        enabled=analysis.enabled,
    )
    return PipelineOrchestrator(
        sessions=sessions or SessionStore(ttl_seconds=settings.sessions.ttl_seconds),
        resolver=build_share_resolver(factory, settings),
        retriever=build_retriever(factory, settings),
        store=store,
        dispatcher=dispatcher,
        download_policy=build_download_policy(settings),
        prober=factory.get_duration_prober() if processing.probe_duration else None,
        context_defaults=AnalysisContext(**analysis.defaults.model_dump()),
    )


class _ServiceHolder:
    """Holder for process-wide services created at startup."""

    orchestrator: PipelineOrchestrator | None = None
    sweeper: asyncio.Task[None] | None = None


def get_orchestrator(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PipelineOrchestrator:
    """Get the pipeline orchestrator, building it on first use."""
    if _ServiceHolder.orchestrator is None:
        _ServiceHolder.orchestrator = build_orchestrator(factory, settings)
    return _ServiceHolder.orchestrator


def get_share_resolver_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ShareInputResolver:
    """Get the share input resolver used by the resolve endpoint."""
    return build_share_resolver(factory, settings)


def get_media_retriever(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MediaRetriever:
    """Get a media retriever for the download endpoint."""
    return build_retriever(factory, settings)


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
OrchestratorDep = Annotated[PipelineOrchestrator, Depends(get_orchestrator)]
ShareResolverDep = Annotated[ShareInputResolver, Depends(get_share_resolver_service)]
RetrieverDep = Annotated[MediaRetriever, Depends(get_media_retriever)]


async def init_services(settings: Settings) -> None:
    """Initialize services on startup.

    Builds the orchestrator, clears stale staging files and starts the
    session sweeper.

    Args:
        settings: Application settings.
    """
    factory = get_factory(settings)

    # Pre-initialize critical services to fail fast
    factory.get_blob_storage()

    orchestrator = build_orchestrator(factory, settings)
    _ServiceHolder.orchestrator = orchestrator

    retriever = build_retriever(factory, settings)
    retriever.cleanup_stale(settings.processing.stale_staging_hours)

    _ServiceHolder.sweeper = asyncio.create_task(
        orchestrator.sessions.run_sweeper(settings.sessions.sweep_interval_seconds),
        name="session-sweeper",
    )

    init_langfuse(settings.telemetry.langfuse)


async def shutdown_services() -> None:
    """Stop background work and close infrastructure services."""
    sweeper = _ServiceHolder.sweeper
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper

    if _ServiceHolder.orchestrator is not None:
        await _ServiceHolder.orchestrator.wait_idle()

    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        shutdown_langfuse()
        _ServiceHolder.orchestrator = None
        _ServiceHolder.sweeper = None
        reset_factory()
        get_settings.cache_clear()
