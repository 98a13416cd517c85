"""Infrastructure factory for creating service instances from configuration."""

import logging
from pathlib import Path
from typing import Any, cast

import httpx

from clipflow.commons.infrastructure.blob import BlobStorageBase, MinioBlobStorage
from clipflow.commons.settings.models import Settings
from clipflow.infrastructure.analysis import (
    LLMVideoAnalyzer,
    VideoAnalyzerBase,
    load_prompt_template,
)
from clipflow.infrastructure.llm import LLMServiceBase, OpenAILLMService
from clipflow.infrastructure.media import DurationProberBase, FFprobeDurationProber
from clipflow.infrastructure.resolvers import (
    ExtractorApiResolver,
    ShareResolverBase,
    YtDlpResolver,
)

logger = logging.getLogger(__name__)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        """Settings the factory builds from."""
        return self._settings

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance.

        Returns:
            Configured blob storage provider.
        """
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            self._instances["blob_storage"] = MinioBlobStorage(
                endpoint=blob_settings.endpoint,
                access_key=blob_settings.access_key,
                secret_key=blob_settings.secret_key,
                secure=blob_settings.use_ssl,
                region=blob_settings.region,
                public_base_url=blob_settings.public_base_url,
            )
        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_share_resolver(self) -> ShareResolverBase:
        """Get share link lookup service.

        Raises:
            ValueError: If provider is not supported.
        """
        if "share_resolver" not in self._instances:
            resolver_settings = self._settings.resolver
            provider = resolver_settings.provider

            if provider == "extractor_api":
                self._instances["share_resolver"] = ExtractorApiResolver(
                    api_url=resolver_settings.api_url,
                    api_key=resolver_settings.api_key,
                    legacy_api_url=resolver_settings.legacy_api_url,
                    legacy_api_key=resolver_settings.legacy_api_key,
                    timeout_seconds=resolver_settings.timeout_seconds,
                )
            elif provider == "ytdlp":
                cookies_file = (
                    Path(resolver_settings.cookies_file)
                    if resolver_settings.cookies_file
                    else None
                )
                self._instances["share_resolver"] = YtDlpResolver(
                    cookies_file=cookies_file,
                    proxy=resolver_settings.proxy,
                )
            else:
                raise ValueError(f"Unsupported resolver provider: {provider}")

        return cast("ShareResolverBase", self._instances["share_resolver"])

    def get_download_client(self) -> httpx.AsyncClient:
        """Get the HTTP client used to stream media downloads."""
        if "download_client" not in self._instances:
            retriever_settings = self._settings.retriever
            self._instances["download_client"] = httpx.AsyncClient(
                timeout=retriever_settings.timeout_seconds,
                follow_redirects=True,
                headers={
                    "User-Agent": retriever_settings.user_agent,
                    "Referer": retriever_settings.referer,
                    "Accept-Language": retriever_settings.accept_language,
                },
            )
        return cast("httpx.AsyncClient", self._instances["download_client"])

    def get_llm_service(self) -> LLMServiceBase:
        """Get LLM service instance.

        Returns:
            Configured LLM service.

        Raises:
            ValueError: If provider is not supported.
        """
        if "llm" not in self._instances:
            llm_settings = self._settings.llm
            provider = llm_settings.provider

            if provider == "openai":
                self._instances["llm"] = OpenAILLMService(
                    api_key=llm_settings.api_key,
                    model=llm_settings.model,
                    base_url=llm_settings.endpoint,
                    video_input=llm_settings.video_input,
                    timeout_seconds=llm_settings.timeout_seconds,
                )
            elif provider == "azure_openai":
                if not llm_settings.endpoint:
                    raise ValueError("azure_openai requires llm.endpoint")
                self._instances["llm"] = OpenAILLMService.for_azure(
                    api_key=llm_settings.api_key,
                    endpoint=llm_settings.endpoint,
                    api_version=llm_settings.api_version,
                    model=llm_settings.model,
                    video_input=llm_settings.video_input,
                    timeout_seconds=llm_settings.timeout_seconds,
                )
            else:
                raise ValueError(f"Unsupported LLM provider: {provider}")

        return cast("LLMServiceBase", self._instances["llm"])

    def get_video_analyzer(self) -> VideoAnalyzerBase:
        """Get the video analysis backend."""
        if "video_analyzer" not in self._instances:
            analysis_settings = self._settings.analysis
            llm_settings = self._settings.llm
            self._instances["video_analyzer"] = LLMVideoAnalyzer(
                llm=self.get_llm_service(),
                prompt_template=load_prompt_template(analysis_settings.prompt_path),
                max_duration_minutes=analysis_settings.max_duration_minutes,
                temperature=llm_settings.temperature,
                max_tokens=llm_settings.max_tokens,
            )
        return cast("VideoAnalyzerBase", self._instances["video_analyzer"])

    def get_duration_prober(self) -> DurationProberBase:
        """Get the local media duration prober."""
        if "duration_prober" not in self._instances:
            self._instances["duration_prober"] = FFprobeDurationProber(
                ffprobe_path=self._settings.processing.ffprobe_path,
            )
        return cast("DurationProberBase", self._instances["duration_prober"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            closer = getattr(instance, "aclose", None) or getattr(
                instance, "close", None
            )
            if closer is None:
                continue
            try:
                close_result = closer()
                if hasattr(close_result, "__await__"):
                    await close_result
            except Exception as e:
                logger.warning(
                    "Error closing service", extra={"service": name, "error": str(e)}
                )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
