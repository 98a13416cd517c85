"""Layered settings loading: JSON files first, environment last."""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from clipflow.commons.settings.models import Settings

ENV_PREFIX = "CLIPFLOW__"
_ENVIRONMENT_VAR = f"{ENV_PREFIX}APP__ENVIRONMENT"


def coerce_env_value(raw: str) -> Any:
    """Turn an environment string into a bool, number, JSON value or str.

    Examples:
        >>> coerce_env_value("true"), coerce_env_value("8000")
        (True, 8000)
        >>> coerce_env_value('["http://localhost:3000"]')
        ['http://localhost:3000']
    """
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"

    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue

    if raw.startswith(("[", "{")):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw

    return raw


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class SettingsLoader:
    """Builds Settings from layered sources.

    Later layers win:
    1. config/appsettings.json
    2. config/appsettings.{environment}.json
    3. CLIPFLOW__* environment variables, "__" separating nested keys
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory holding the appsettings files.
                Defaults to ./config.
            environment: Environment name selecting the overlay file.
                Defaults to CLIPFLOW__APP__ENVIRONMENT, then "dev".
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(_ENVIRONMENT_VAR, "dev")

    def load(self) -> Settings:
        """Merge every layer and validate the result."""
        layers = [
            self._read_json("appsettings.json"),
            self._read_json(f"appsettings.{self.environment}.json"),
            self._env_overrides(os.environ),
        ]
        merged: dict[str, Any] = {}
        for layer in layers:
            merged = deep_merge(merged, layer)
        return Settings(**merged)

    def _read_json(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename
        if not path.is_file():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))

    def _env_overrides(self, environ: Mapping[str, str]) -> dict[str, Any]:
        """Nest prefixed variables: CLIPFLOW__LLM__MODEL sets llm.model."""
        overrides: dict[str, Any] = {}
        for name, raw in environ.items():
            if not name.startswith(ENV_PREFIX):
                continue
            *parents, leaf = name[len(ENV_PREFIX) :].lower().split("__")
            node = overrides
            for part in parents:
                node = node.setdefault(part, {})
            node[leaf] = coerce_env_value(raw)
        return overrides


class _SettingsHolder:
    """Holder for the settings singleton to avoid global statements."""

    instance: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the process-wide settings.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Rebuild from sources even if already loaded.

    Returns:
        Settings instance.
    """
    if _SettingsHolder.instance is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _SettingsHolder.instance = loader.load()
    return _SettingsHolder.instance


def reset_settings() -> None:
    """Forget the loaded settings (for testing)."""
    _SettingsHolder.instance = None
