"""Settings management module."""

from clipflow.commons.settings.loader import (
    SettingsLoader,
    get_settings,
    reset_settings,
)
from clipflow.commons.settings.models import (
    AnalysisDefaultsSettings,
    AnalysisSettings,
    AppSettings,
    BlobStorageSettings,
    BucketSettings,
    LangfuseSettings,
    LLMSettings,
    ProcessingSettings,
    ResolverSettings,
    RetrieverSettings,
    ServerSettings,
    SessionSettings,
    Settings,
    TelemetrySettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "BlobStorageSettings",
    "BucketSettings",
    # Pipeline
    "ResolverSettings",
    "RetrieverSettings",
    "ProcessingSettings",
    "SessionSettings",
    # Analysis
    "AnalysisSettings",
    "AnalysisDefaultsSettings",
    "LLMSettings",
    # Telemetry
    "TelemetrySettings",
    "LangfuseSettings",
]
