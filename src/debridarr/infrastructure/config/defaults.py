"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "debridarr",
    "environment": "dev",
    "public_url": "",
    "http": {
        "timeout_seconds": 30.0,
        "user_agent": "Debridarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "jackett": {
        "url": "http://localhost:9117",
        "api_key": "",
    },
    "metadata": {
        "tmdb_access_token": "",
        "cinemeta_url": "https://v3-cinemeta.strem.io",
    },
    "slow_indexer": {
        "duration_seconds": 20,
        "window_seconds": 1800,
        "max_requests": 5,
    },
    "pipeline": {
        "torrent_info_concurrency": 5,
        "torrent_info_timeout_cap": 30.0,
        "torrent_infos_ttl_seconds": 7 * 86_400,
        "hash_batch_size": 50,
        "status_cache_ttl_seconds": 300,
        "download_link_ttl_seconds": 3600,
    },
    "debrid": {
        "max_retries": 2,
        "retry_delay_seconds": 1.0,
    },
    "passkey": {
        "replace": "",
        "info_url": "",
        "pattern": "[a-zA-Z0-9]+",
    },
    "rate_limit": {
        "window_seconds": 3600,
        "max_requests": 150,
    },
    "immutable_user_config_keys": [],
}
