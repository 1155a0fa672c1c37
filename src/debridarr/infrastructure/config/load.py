from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, CacheConfig, EnvOverrides

_SECTION_KEYS: set[str] = {
    "http",
    "logging",
    "jackett",
    "metadata",
    "slow_indexer",
    "pipeline",
    "debrid",
    "passkey",
    "rate_limit",
    "cache",
    "addon",
    "default_user_config",
}

_TOP_LEVEL_KEYS: tuple[str, ...] = (
    "app_name",
    "environment",
    "public_url",
    "static_dir",
    "immutable_user_config_keys",
)

# Flat -> section mappings
_FLAT_MAP: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "jackett_url": ("jackett", "url"),
    "jackett_api_key": ("jackett", "api_key"),
    "tmdb_access_token": ("metadata", "tmdb_access_token"),
    "cinemeta_url": ("metadata", "cinemeta_url"),
    "slow_indexer_duration_seconds": ("slow_indexer", "duration_seconds"),
    "slow_indexer_window_seconds": ("slow_indexer", "window_seconds"),
    "slow_indexer_max_requests": ("slow_indexer", "max_requests"),
    "torrent_info_concurrency": ("pipeline", "torrent_info_concurrency"),
    "torrent_info_timeout_cap": ("pipeline", "torrent_info_timeout_cap"),
    "torrent_infos_ttl_seconds": ("pipeline", "torrent_infos_ttl_seconds"),
    "hash_batch_size": ("pipeline", "hash_batch_size"),
    "status_cache_ttl_seconds": ("pipeline", "status_cache_ttl_seconds"),
    "download_link_ttl_seconds": ("pipeline", "download_link_ttl_seconds"),
    "debrid_max_retries": ("debrid", "max_retries"),
    "debrid_retry_delay_seconds": ("debrid", "retry_delay_seconds"),
    "replace_passkey": ("passkey", "replace"),
    "replace_passkey_info_url": ("passkey", "info_url"),
    "replace_passkey_pattern": ("passkey", "pattern"),
    "rate_limit_window_seconds": ("rate_limit", "window_seconds"),
    "rate_limit_max_requests": ("rate_limit", "max_requests"),
    "cache_backend": ("cache", "backend"),
    "cache_directory": ("cache", "directory"),
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    Recursively merge `override` into `base` and return `base`.

    Rules:
    - dict + dict => deep merge
    - otherwise => override wins
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, Mapping)
        ):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _normalize_layer(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalize a layer (defaults/YAML/ENV/CLI) into the canonical *sectioned* shape.

    Canonical top-level keys:
    - app_name, environment, public_url, static_dir, immutable_user_config_keys
    - one mapping per section in ``_SECTION_KEYS``
    """
    out: dict[str, Any] = {}

    # Pass through already sectioned blocks
    for section in _SECTION_KEYS:
        if section in data and isinstance(data[section], Mapping):
            out[section] = dict(data[section])

    for key in _TOP_LEVEL_KEYS:
        if key in data:
            out[key] = data[key]

    for flat_key, (section, section_key) in _FLAT_MAP.items():
        if flat_key in data:
            out.setdefault(section, {})
            out[section][section_key] = data[flat_key]

    return out


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
    raw = config_path.read_text(encoding="utf-8")
    parsed = yaml.safe_load(raw)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(
            f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def _cache_env_layer() -> dict[str, Any]:
    """CACHE_* variables that were actually set, as a ``cache`` section."""
    settings = CacheConfig()
    provided = settings.model_dump(include=settings.model_fields_set)
    return {"cache": provided} if provided else {}


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Load configuration with strict precedence:
    defaults < YAML file < env vars < cli overrides

    This function MUST NOT create files or directories (no filesystem side-effects).
    """
    cli_overrides = cli_overrides or {}

    # Load .env first so it participates as "env vars" layer.
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    base = _normalize_layer(deepcopy(DEFAULT_CONFIG))

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(config_path)
        yaml_layer = _normalize_layer(_read_yaml_config(config_path))
        _deep_merge(base, yaml_layer)

    _deep_merge(base, _cache_env_layer())

    env_layer_flat = EnvOverrides().to_update_dict()
    env_layer = _normalize_layer(env_layer_flat)
    _deep_merge(base, env_layer)

    cli_layer = _normalize_layer(cli_overrides)
    _deep_merge(base, cli_layer)

    # Validate final merged config (single source of truth).
    return AppConfig.model_validate(base)
