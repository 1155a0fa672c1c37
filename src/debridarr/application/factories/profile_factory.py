"""Factory for creating UserProfile entities from URL tokens."""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from debridarr.domain.entities.profile import UserProfile
from debridarr.domain.exceptions import InvalidProfileToken
from debridarr.infrastructure.config.schema import UserProfileConfig

log = structlog.get_logger(__name__)


def _field_keys() -> dict[str, str]:
    """Every accepted spelling (name, alias, alias choices) -> field name."""
    keys: dict[str, str] = {}
    for name, info in UserProfileConfig.model_fields.items():
        keys[name] = name
        if info.alias:
            keys[info.alias] = name
        choices = getattr(info.validation_alias, "choices", ())
        for choice in choices:
            if isinstance(choice, str):
                keys[choice] = name
    return keys


_FIELD_BY_KEY = _field_keys()


def encode_token(overrides: Mapping[str, Any]) -> str:
    """Encode user overrides as URL-safe base64 JSON (no padding)."""
    raw = json.dumps(dict(overrides), separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_token(token: str) -> dict[str, Any]:
    """Decode a token produced by :func:`encode_token`.

    Standard base64 (``+/``) is accepted too.

    Raises:
        InvalidProfileToken: not base64, not JSON, or not an object.
    """
    normalized = token.replace("+", "-").replace("/", "_")
    normalized += "=" * (-len(normalized) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(normalized))
    except (binascii.Error, ValueError) as exc:
        raise InvalidProfileToken("Invalid user configuration") from exc
    if not isinstance(data, dict):
        raise InvalidProfileToken("Invalid user configuration")
    return data


class ProfileFactory:
    """Builds per-request profiles from operator defaults and user overrides.

    Args:
        defaults: Operator default user configuration.
        immutable_keys: Keys stripped from user input before the merge
            (camelCase or snake_case).
    """

    def __init__(
        self,
        *,
        defaults: UserProfileConfig,
        immutable_keys: Iterable[str] = (),
    ) -> None:
        self.defaults = defaults
        self.immutable_keys = frozenset(immutable_keys)

    def _is_immutable(self, key: str) -> bool:
        name = _FIELD_BY_KEY.get(key)
        if name is None:
            return key in self.immutable_keys
        return any(_FIELD_BY_KEY.get(k) == name for k in self.immutable_keys)

    def strip_immutable(self, overrides: Mapping[str, Any]) -> dict[str, Any]:
        kept = {k: v for k, v in overrides.items() if not self._is_immutable(k)}
        dropped = sorted(set(overrides) - set(kept))
        if dropped:
            log.debug("profile_immutable_keys_dropped", keys=dropped)
        return kept

    def merge(self, overrides: Mapping[str, Any]) -> UserProfileConfig:
        """Validate ``defaults + overrides`` (immutable keys ignored).

        Raises:
            InvalidProfileToken: an override has an invalid value.
        """
        data = self.defaults.model_dump()
        for key, value in self.strip_immutable(overrides).items():
            name = _FIELD_BY_KEY.get(key)
            if name is not None:
                data[name] = value
        try:
            return UserProfileConfig.model_validate(data)
        except ValidationError as exc:
            raise InvalidProfileToken(
                f"Invalid user configuration: {exc.error_count()} error(s)"
            ) from exc

    def build(
        self, overrides: Mapping[str, Any], *, client_ip: str = ""
    ) -> UserProfile:
        cfg = self.merge(overrides)
        return UserProfile(
            qualities=tuple(cfg.qualities),
            exclude_keywords=tuple(cfg.exclude_keywords),
            max_torrents=cfg.max_torrents,
            prioritize_languages=tuple(cfg.prioritize_languages),
            prioritize_pack_torrents=cfg.prioritize_pack_torrents,
            force_cache_next_episode=cfg.force_cache_next_episode,
            sort_cached=tuple(cfg.sort_cached),
            sort_uncached=tuple(cfg.sort_uncached),
            hide_uncached=cfg.hide_uncached,
            indexers=tuple(cfg.indexers),
            indexer_timeout_sec=cfg.indexer_timeout_sec,
            passkey=cfg.passkey,
            meta_language=cfg.meta_language,
            enable_mediaflow=cfg.enable_mediaflow,
            mediaflow_proxy_url=cfg.mediaflow_proxy_url,
            mediaflow_api_password=cfg.mediaflow_api_password,
            mediaflow_public_ip=cfg.mediaflow_public_ip,
            use_stremthru=cfg.use_stremthru,
            stremthru_url=cfg.stremthru_url,
            stremthru_store=cfg.stremthru_store,
            debrid_id=cfg.debrid_id,
            debrid_api_key=cfg.debrid_api_key,
            client_ip=client_ip,
        )

    def from_token(self, token: str, *, client_ip: str = "") -> UserProfile:
        return self.build(decode_token(token), client_ip=client_ip)
