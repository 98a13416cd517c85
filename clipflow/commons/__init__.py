"""Shared building blocks: settings, telemetry and storage adapters."""
