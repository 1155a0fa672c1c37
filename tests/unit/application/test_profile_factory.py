"""Tests for profile token encoding and ProfileFactory."""

from __future__ import annotations

import base64

import pytest

from debridarr.application.factories.profile_factory import (
    ProfileFactory,
    decode_token,
    encode_token,
)
from debridarr.domain.exceptions import InvalidProfileToken
from debridarr.infrastructure.config.schema import UserProfileConfig


def _factory(**defaults) -> ProfileFactory:
    return ProfileFactory(
        defaults=UserProfileConfig(**defaults),
        immutable_keys=("debridApiKey", "indexer_timeout_sec"),
    )


class TestTokens:
    def test_roundtrip(self) -> None:
        token = encode_token({"maxTorrents": 3, "qualities": [720]})
        assert "=" not in token
        assert decode_token(token) == {"maxTorrents": 3, "qualities": [720]}

    def test_standard_base64_accepted(self) -> None:
        token = base64.b64encode(b'{"passkey":"a?>b"}').decode()
        assert decode_token(token) == {"passkey": "a?>b"}

    @pytest.mark.parametrize("token", ["!!!", base64.b64encode(b"not json").decode()])
    def test_garbage(self, token: str) -> None:
        with pytest.raises(InvalidProfileToken):
            decode_token(token)

    def test_non_object(self) -> None:
        with pytest.raises(InvalidProfileToken):
            decode_token(base64.urlsafe_b64encode(b"[1, 2]").decode())


class TestProfileFactory:
    def test_defaults_without_overrides(self) -> None:
        profile = _factory(max_torrents=5).build({})
        assert profile.max_torrents == 5
        assert profile.qualities == (0, 720, 1080)
        assert profile.sort_cached == (("quality", True), ("size", True))

    def test_camel_case_overrides(self) -> None:
        profile = _factory().build(
            {
                "maxTorrents": 2,
                "qualities": "720, 1080",
                "priotizeLanguages": ["french"],
                "enableMediaFlow": True,
                "sortUncached": "size:true",
                "unknownKey": 1,
            },
            client_ip="1.2.3.4",
        )
        assert profile.max_torrents == 2
        assert profile.qualities == (720, 1080)
        assert profile.prioritize_languages == ("french",)
        assert profile.enable_mediaflow
        assert profile.sort_uncached == (("size", True),)
        assert profile.client_ip == "1.2.3.4"

    def test_immutable_keys_ignored_in_any_spelling(self) -> None:
        factory = _factory(debrid_api_key="operator", indexer_timeout_sec=20)
        profile = factory.build(
            {"debrid_api_key": "user", "indexerTimeoutSec": 1, "passkey": "abc"}
        )
        assert profile.debrid_api_key == "operator"
        assert profile.indexer_timeout_sec == 20
        assert profile.passkey == "abc"

    def test_invalid_value(self) -> None:
        with pytest.raises(InvalidProfileToken):
            _factory().build({"maxTorrents": 0})

    def test_from_token(self) -> None:
        token = encode_token({"debridId": "premiumize", "debridApiKey": "ignored"})
        profile = _factory(debrid_api_key="operator").from_token(token)
        assert profile.debrid_id == "premiumize"
        assert profile.debrid_api_key == "operator"
