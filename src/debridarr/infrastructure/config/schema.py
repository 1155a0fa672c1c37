"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def comma_list(value: Any) -> Any:
    """``"a, b,,c"`` -> ``["a", "b", "c"]``; lists pass through."""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def _sort_list(value: Any) -> Any:
    """``"quality:true, size:false"`` -> ``[("quality", True), ("size", False)]``."""
    if not isinstance(value, str):
        return value
    keys: list[tuple[str, bool]] = []
    for item in comma_list(value):
        field, _, descending = item.partition(":")
        keys.append((field.strip(), descending.strip().lower() == "true"))
    return keys


# ---------------------------------------------------------------------------
# User configuration (per request, camelCase on the wire)
# ---------------------------------------------------------------------------

SortField = Literal["quality", "size", "seeders"]


class UserProfileConfig(BaseModel):
    """User configuration as carried by the addon URL token.

    Field names follow the Stremio addon wire format (camelCase);
    ``priotize*`` keeps the historical spelling and also accepts
    ``prioritize*``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    qualities: list[int] = Field(default_factory=lambda: [0, 720, 1080])
    exclude_keywords: list[str] = Field(default_factory=list)
    max_torrents: int = Field(default=8, ge=1)
    prioritize_languages: list[str] = Field(
        default_factory=list,
        alias="priotizeLanguages",
        validation_alias=AliasChoices(
            "priotizeLanguages", "prioritizeLanguages", "prioritize_languages"
        ),
    )
    prioritize_pack_torrents: int = Field(
        default=2,
        ge=0,
        alias="priotizePackTorrents",
        validation_alias=AliasChoices(
            "priotizePackTorrents", "prioritizePackTorrents", "prioritize_pack_torrents"
        ),
    )
    force_cache_next_episode: bool = False
    sort_cached: list[tuple[SortField, bool]] = Field(
        default_factory=lambda: [("quality", True), ("size", True)]
    )
    sort_uncached: list[tuple[SortField, bool]] = Field(
        default_factory=lambda: [("seeders", True)]
    )
    hide_uncached: bool = False
    indexers: list[str] = Field(default_factory=lambda: ["all"])
    indexer_timeout_sec: int = Field(default=60, ge=1)
    passkey: str = ""
    meta_language: str = ""

    enable_mediaflow: bool = Field(default=False, alias="enableMediaFlow")
    mediaflow_proxy_url: str = ""
    mediaflow_api_password: str = ""
    mediaflow_public_ip: str = ""

    use_stremthru: bool = Field(default=True, alias="useStremThru")
    stremthru_url: str = "https://stremthru.13377001.xyz"
    stremthru_store: str = "realdebrid"
    debrid_id: str = "realdebrid"
    debrid_api_key: str = ""

    @field_validator(
        "qualities", "exclude_keywords", "prioritize_languages", "indexers",
        mode="before",
    )
    @classmethod
    def _split_lists(cls, v: Any) -> Any:
        return comma_list(v)

    @field_validator("sort_cached", "sort_uncached", mode="before")
    @classmethod
    def _split_sorts(cls, v: Any) -> Any:
        return _sort_list(v)


# ---------------------------------------------------------------------------
# Application configuration
# ---------------------------------------------------------------------------


class CacheConfig(BaseSettings):
    """Cache configuration (backend-agnostic)."""

    backend: Literal["diskcache", "redis", "memory"] = Field(
        default="diskcache",
        description="Cache backend: 'diskcache' (SQLite), 'redis' or 'memory'",
    )

    # Diskcache settings
    directory: Path = Field(
        default=Path("./data/cache"),
        description="Diskcache SQLite directory (must be persistent in production)",
    )

    # Redis settings
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )

    # Shared settings
    ttl_seconds: int = Field(
        default=86_400,
        description="Default TTL for cache entries (seconds)",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",  # Env vars: CACHE_BACKEND, CACHE_REDIS_URL, ...
        case_sensitive=False,
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)


class AddonConfig(BaseModel):
    """Stremio manifest identity."""

    id: str = "community.stremio.debridarr"
    name: str = "Debridarr"
    description: str = (
        "Stremio addon that resolves streams using Jackett and Debrid. "
        "It seamlessly integrates with private trackers."
    )
    icon: str = "https://avatars.githubusercontent.com/u/15383019?s=48&v=4"


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/jackett/metadata/...).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="debridarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )
    public_url: str = Field(
        default="",
        description="Public base URL of the addon; empty = derived from the request.",
    )
    static_dir: Optional[Path] = Field(
        default=None,
        description="Directory served under /static (not_ready.mp4 placeholder).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for outgoing requests.",
    )
    http_user_agent: str = Field(
        default="Debridarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Jackett (YAML section: jackett.*)
    jackett_url: str = Field(
        default="http://localhost:9117",
        validation_alias=AliasChoices("jackett_url", AliasPath("jackett", "url")),
    )
    jackett_api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "jackett_api_key", AliasPath("jackett", "api_key")
        ),
    )

    # Metadata (YAML section: metadata.*)
    tmdb_access_token: str = Field(
        default="",
        validation_alias=AliasChoices(
            "tmdb_access_token", AliasPath("metadata", "tmdb_access_token")
        ),
        description="TMDB read access token; empty = use Cinemeta.",
    )
    cinemeta_url: str = Field(
        default="https://v3-cinemeta.strem.io",
        validation_alias=AliasChoices(
            "cinemeta_url", AliasPath("metadata", "cinemeta_url")
        ),
    )

    # Slow indexer detection (YAML section: slow_indexer.*)
    slow_indexer_duration_seconds: int = Field(
        default=20,
        validation_alias=AliasChoices(
            "slow_indexer_duration_seconds",
            AliasPath("slow_indexer", "duration_seconds"),
        ),
        description="Search duration above which an indexer answer is slow.",
    )
    slow_indexer_window_seconds: int = Field(
        default=1800,
        validation_alias=AliasChoices(
            "slow_indexer_window_seconds",
            AliasPath("slow_indexer", "window_seconds"),
        ),
    )
    slow_indexer_max_requests: int = Field(
        default=5,
        validation_alias=AliasChoices(
            "slow_indexer_max_requests",
            AliasPath("slow_indexer", "max_requests"),
        ),
        description="Slow answers within the window that exclude an indexer.",
    )

    # Pipeline tuning (YAML section: pipeline.*)
    torrent_info_concurrency: int = Field(
        default=5,
        validation_alias=AliasChoices(
            "torrent_info_concurrency",
            AliasPath("pipeline", "torrent_info_concurrency"),
        ),
    )
    torrent_info_timeout_cap: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "torrent_info_timeout_cap",
            AliasPath("pipeline", "torrent_info_timeout_cap"),
        ),
    )
    torrent_infos_ttl_seconds: int = Field(
        default=7 * 86_400,
        validation_alias=AliasChoices(
            "torrent_infos_ttl_seconds",
            AliasPath("pipeline", "torrent_infos_ttl_seconds"),
        ),
    )
    hash_batch_size: int = Field(
        default=50,
        validation_alias=AliasChoices(
            "hash_batch_size", AliasPath("pipeline", "hash_batch_size")
        ),
    )
    status_cache_ttl_seconds: int = Field(
        default=300,
        validation_alias=AliasChoices(
            "status_cache_ttl_seconds",
            AliasPath("pipeline", "status_cache_ttl_seconds"),
        ),
    )
    download_link_ttl_seconds: int = Field(
        default=3600,
        validation_alias=AliasChoices(
            "download_link_ttl_seconds",
            AliasPath("pipeline", "download_link_ttl_seconds"),
        ),
    )

    # Debrid (YAML section: debrid.*)
    debrid_max_retries: int = Field(
        default=2,
        validation_alias=AliasChoices(
            "debrid_max_retries", AliasPath("debrid", "max_retries")
        ),
    )
    debrid_retry_delay_seconds: float = Field(
        default=1.0,
        validation_alias=AliasChoices(
            "debrid_retry_delay_seconds", AliasPath("debrid", "retry_delay_seconds")
        ),
    )

    # Private tracker passkey (YAML section: passkey.*)
    replace_passkey: str = Field(
        default="",
        validation_alias=AliasChoices(
            "replace_passkey", AliasPath("passkey", "replace")
        ),
        description="Operator passkey swapped for the user's one on upload.",
    )
    replace_passkey_info_url: str = Field(
        default="",
        validation_alias=AliasChoices(
            "replace_passkey_info_url", AliasPath("passkey", "info_url")
        ),
    )
    replace_passkey_pattern: str = Field(
        default="[a-zA-Z0-9]+",
        validation_alias=AliasChoices(
            "replace_passkey_pattern", AliasPath("passkey", "pattern")
        ),
    )

    # Rate limiting of download resolution (YAML section: rate_limit.*)
    rate_limit_window_seconds: int = Field(
        default=3600,
        validation_alias=AliasChoices(
            "rate_limit_window_seconds", AliasPath("rate_limit", "window_seconds")
        ),
    )
    rate_limit_max_requests: int = Field(
        default=150,
        validation_alias=AliasChoices(
            "rate_limit_max_requests", AliasPath("rate_limit", "max_requests")
        ),
    )

    # User configuration
    immutable_user_config_keys: list[str] = Field(
        default_factory=list,
        description="User config keys callers may not override.",
    )
    default_user_config: UserProfileConfig = Field(default_factory=UserProfileConfig)

    addon: AddonConfig = Field(default_factory=AddonConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("static_dir", mode="before")
    @classmethod
    def _validate_static_dir(cls, v: Any) -> Optional[Path]:
        if v is None or v == "":
            return None
        return _normalize_path(v)

    @field_validator("immutable_user_config_keys", mode="before")
    @classmethod
    def _split_immutable_keys(cls, v: Any) -> Any:
        return comma_list(v)

    @field_validator("http_timeout_seconds", "torrent_info_timeout_cap")
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("torrent_info_concurrency", "hash_batch_size")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "public_url": self.public_url,
            "static_dir": str(self.static_dir) if self.static_dir else None,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "jackett": {"url": self.jackett_url, "api_key": self.jackett_api_key},
            "metadata": {
                "tmdb_access_token": self.tmdb_access_token,
                "cinemeta_url": self.cinemeta_url,
            },
            "slow_indexer": {
                "duration_seconds": self.slow_indexer_duration_seconds,
                "window_seconds": self.slow_indexer_window_seconds,
                "max_requests": self.slow_indexer_max_requests,
            },
            "pipeline": {
                "torrent_info_concurrency": self.torrent_info_concurrency,
                "torrent_info_timeout_cap": self.torrent_info_timeout_cap,
                "torrent_infos_ttl_seconds": self.torrent_infos_ttl_seconds,
                "hash_batch_size": self.hash_batch_size,
                "status_cache_ttl_seconds": self.status_cache_ttl_seconds,
                "download_link_ttl_seconds": self.download_link_ttl_seconds,
            },
            "debrid": {
                "max_retries": self.debrid_max_retries,
                "retry_delay_seconds": self.debrid_retry_delay_seconds,
            },
            "passkey": {
                "replace": self.replace_passkey,
                "info_url": self.replace_passkey_info_url,
                "pattern": self.replace_passkey_pattern,
            },
            "rate_limit": {
                "window_seconds": self.rate_limit_window_seconds,
                "max_requests": self.rate_limit_max_requests,
            },
            "immutable_user_config_keys": list(self.immutable_user_config_keys),
            "default_user_config": self.default_user_config.model_dump(by_alias=True),
            "addon": self.addon.model_dump(),
            "cache": self.cache.model_dump(mode="json"),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read DEBRIDARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - DEBRIDARR_JACKETT_URL
    - DEBRIDARR_JACKETT_API_KEY
    - DEBRIDARR_REPLACE_PASSKEY
    - DEBRIDARR_IMMUTABLE_USER_CONFIG_KEYS=debridId,debridApiKey
    - DEBRIDARR_DEFAULT_USER_CONFIG='{"maxTorrents": 10}'
    """

    model_config = SettingsConfigDict(
        env_prefix="DEBRIDARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None
    public_url: Optional[str] = None
    static_dir: Optional[str] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    jackett_url: Optional[str] = None
    jackett_api_key: Optional[str] = None

    tmdb_access_token: Optional[str] = None
    cinemeta_url: Optional[str] = None

    slow_indexer_duration_seconds: Optional[int] = None
    slow_indexer_window_seconds: Optional[int] = None
    slow_indexer_max_requests: Optional[int] = None

    torrent_info_concurrency: Optional[int] = None
    torrent_info_timeout_cap: Optional[float] = None
    torrent_infos_ttl_seconds: Optional[int] = None
    hash_batch_size: Optional[int] = None
    status_cache_ttl_seconds: Optional[int] = None
    download_link_ttl_seconds: Optional[int] = None

    debrid_max_retries: Optional[int] = None
    debrid_retry_delay_seconds: Optional[float] = None

    replace_passkey: Optional[str] = None
    replace_passkey_info_url: Optional[str] = None
    replace_passkey_pattern: Optional[str] = None

    rate_limit_window_seconds: Optional[int] = None
    rate_limit_max_requests: Optional[int] = None

    # Comma separated; split by AppConfig.
    immutable_user_config_keys: Optional[str] = None
    # JSON object of camelCase user config keys.
    default_user_config: Optional[dict[str, Any]] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
