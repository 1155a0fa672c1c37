"""MediaFlow proxy support.

When a user routes playback through a MediaFlow proxy, debrid links
must be requested for the proxy's public IP (debrid services bind links
to the requesting IP) and the final URL is rewritten to go through the
proxy's ``/proxy/stream`` endpoint.
"""

from __future__ import annotations

from dataclasses import replace
from urllib.parse import urlencode

import httpx
import structlog

from debridarr.domain.entities.profile import UserProfile
from debridarr.infrastructure.cache.ttl_cache import TtlCache

log = structlog.get_logger(__name__)


def mediaflow_enabled(profile: UserProfile) -> bool:
    return profile.enable_mediaflow and bool(profile.mediaflow_proxy_url)


def apply_mediaflow(url: str, profile: UserProfile) -> str:
    """Rewrite ``url`` through the user's MediaFlow proxy, if enabled."""
    if not mediaflow_enabled(profile):
        return url
    query = urlencode({"d": url, "api_password": profile.mediaflow_api_password})
    return f"{profile.mediaflow_proxy_url.rstrip('/')}/proxy/stream?{query}"


class MediaFlowProxy:
    """Looks up (and remembers) the public IP of MediaFlow proxies.

    Args:
        http_client: Shared httpx client.
        ip_ttl_seconds: How long a looked-up IP is reused.
    """

    def __init__(
        self, *, http_client: httpx.AsyncClient, ip_ttl_seconds: int = 300
    ) -> None:
        self._http = http_client
        self._ips: TtlCache[str, str] = TtlCache(ip_ttl_seconds)

    async def public_ip(self, profile: UserProfile) -> str | None:
        base_url = profile.mediaflow_proxy_url.rstrip("/")
        cached = self._ips.get(base_url)
        if cached is not None:
            return cached
        try:
            resp = await self._http.get(
                f"{base_url}/proxy/ip",
                params={"api_password": profile.mediaflow_api_password},
            )
            resp.raise_for_status()
            ip = resp.json().get("ip")
        except (httpx.HTTPError, ValueError):
            log.warning("mediaflow_ip_lookup_failed", proxy=base_url, exc_info=True)
            return None
        if ip:
            self._ips.set(base_url, ip)
        return ip

    async def with_public_ip(self, profile: UserProfile) -> UserProfile:
        """Return ``profile`` with ``client_ip`` set to the proxy's IP."""
        if not mediaflow_enabled(profile):
            return profile
        ip = profile.mediaflow_public_ip or await self.public_ip(profile)
        if not ip:
            return profile
        return replace(profile, client_ip=ip)
