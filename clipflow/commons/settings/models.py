"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "clipflow"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class BucketSettings(BaseModel):
    """Bucket name configuration."""

    videos: str = "clipflow-videos"


class BlobStorageSettings(BaseModel):
    """Blob storage settings (MinIO/S3)."""

    provider: Literal["minio", "s3"] = "minio"
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    buckets: BucketSettings = Field(default_factory=BucketSettings)
    key_prefix: str = "videos"
    public_base_url: str | None = None  # CDN or gateway in front of the bucket
    dedup_scan_limit: int = Field(default=1000, ge=0)


class ResolverSettings(BaseModel):
    """Share link resolution settings."""

    provider: Literal["extractor_api", "ytdlp"] = "extractor_api"
    api_url: str = "https://api.snapany.com/v1/extract"
    api_key: str = ""
    legacy_api_url: str = "https://service.iiilab.com/iiilab/extract"
    legacy_api_key: str = ""
    timeout_seconds: float = 30.0
    allow_unknown_sources: bool = False
    proxy: str | None = None
    cookies_file: str | None = None


class RetrieverSettings(BaseModel):
    """Media download settings."""

    user_agent: str = (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 16_6 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.6 "
        "Mobile/15E148 Safari/604.1"
    )
    referer: str = "https://www.douyin.com/"
    accept_language: str = "zh-CN,zh;q=0.9,en;q=0.8"
    timeout_seconds: float = 120.0
    chunk_size: int = Field(default=64 * 1024, ge=1024)
    progress_interval_seconds: float = Field(default=0.1, ge=0)


class ProcessingSettings(BaseModel):
    """Staging and retry settings for the download stage."""

    staging_dir: str = "tmp/staging"
    max_video_size_mb: int = 512
    retry_attempts: int = Field(default=3, ge=1)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    retry_backoff_multiplier: float = Field(default=2.0, ge=1)
    probe_duration: bool = True
    ffprobe_path: str = "ffprobe"
    stale_staging_hours: float = 24.0


class AnalysisDefaultsSettings(BaseModel):
    """Prompt context used when a submission does not provide one."""

    niche: str = "general content"
    goal: str = "follower growth, sales conversion, traffic or brand awareness"
    persona: str = "users aged 18-35"
    tone: str = "professional yet lively"
    product_info: str = "no specific product"
    compliance_notes: str = "follow platform rules, no violating content"


class AnalysisSettings(BaseModel):
    """AI analysis settings."""

    enabled: bool = True
    max_duration_minutes: float = Field(default=5, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=2.0, ge=0)
    prompt_path: str | None = "prompt/video_analyze.md"
    defaults: AnalysisDefaultsSettings = Field(
        default_factory=AnalysisDefaultsSettings
    )


class LLMSettings(BaseModel):
    """LLM service settings."""

    provider: Literal["openai", "azure_openai"] = "openai"
    api_key: str = ""
    endpoint: str | None = None
    api_version: str = "2024-10-21"  # azure_openai only
    model: str = "gpt-4o"
    temperature: float = Field(default=0.4, ge=0, le=2)
    max_tokens: int = 8192
    timeout_seconds: int = 300
    video_input: bool = True  # send the video URL as a video_url content part


class SessionSettings(BaseModel):
    """In-memory session table settings."""

    ttl_seconds: int = Field(default=1800, ge=1)
    sweep_interval_seconds: int = Field(default=300, ge=1)


class LangfuseSettings(BaseModel):
    """Langfuse tracing settings."""

    enabled: bool = False
    public_key: str = ""
    secret_key: str = ""
    host: str = "https://cloud.langfuse.com"
    debug: bool = False
    sample_rate: float = Field(default=1.0, ge=0, le=1)
    flush_at: int = 15
    flush_interval: float = 0.5


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"
    langfuse: LangfuseSettings = Field(default_factory=LangfuseSettings)


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    retriever: RetrieverSettings = Field(default_factory=RetrieverSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    sessions: SessionSettings = Field(default_factory=SessionSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CLIPFLOW__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
