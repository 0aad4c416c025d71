"""
Settings loading.

Resolves ``BrewlogSettings`` from three layers, later layers winning:

1. the packaged ``configs/default.yaml``
2. an optional user YAML file
3. ``BREWLOG_<KEY>`` environment variables for top-level keys

Both a synchronous loader (for CLI start-up) and an ``aiofiles`` based
async loader are provided.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import aiofiles
import structlog
import yaml
from pydantic import ValidationError

from brewlog.core.domain.config_schema import BrewlogSettings
from brewlog.core.domain.errors import ConfigError

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"
ENV_PREFIX = "BREWLOG_"


def _parse_yaml(raw: str, source: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Invalid YAML in {source}: {exc}", details={"path": str(source)}
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config root must be a mapping: {source}", details={"path": str(source)}
        )
    return data


def _read_sync(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}", details={"path": str(path)})
    with open(path, encoding="utf-8") as f:
        return _parse_yaml(f.read(), path)


async def _read_async(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}", details={"path": str(path)})
    async with aiofiles.open(path, encoding="utf-8") as f:
        raw = await f.read()
    return _parse_yaml(raw, path)


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect ``BREWLOG_<KEY>`` variables that name a known setting."""
    environ = os.environ if environ is None else environ
    known = set(BrewlogSettings.model_fields)
    overrides: dict[str, str] = {}
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        key = name[len(ENV_PREFIX):].lower()
        if key in known:
            overrides[key] = value
    return overrides


def build_settings(
    layers: list[dict[str, Any]], environ: Mapping[str, str] | None = None
) -> BrewlogSettings:
    """
    Merge config layers and environment overrides into validated settings.

    Raises:
        ConfigError: If the merged values fail validation
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update(layer)
    merged.update(env_overrides(environ))
    try:
        return BrewlogSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid configuration: {exc.error_count()} error(s)",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def load_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> BrewlogSettings:
    """Load settings synchronously."""
    layers = [_read_sync(DEFAULT_CONFIG_PATH)]
    if config_path is not None:
        layers.append(_read_sync(Path(config_path)))
    settings = build_settings(layers, environ)
    logger.debug("config.loaded", path=str(config_path) if config_path else "default")
    return settings


async def load_settings_async(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> BrewlogSettings:
    """Load settings without blocking the event loop."""
    layers = [await _read_async(DEFAULT_CONFIG_PATH)]
    if config_path is not None:
        layers.append(await _read_async(Path(config_path)))
    settings = build_settings(layers, environ)
    logger.debug("config.loaded", path=str(config_path) if config_path else "default")
    return settings
