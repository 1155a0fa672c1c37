"""Tests for the Cinemeta and TMDB metadata clients."""

from __future__ import annotations

import httpx
import pytest
import respx

from debridarr.domain.entities import EpisodeRef, parse_media_id
from debridarr.domain.exceptions import MediaNotFound
from debridarr.infrastructure.cache import MemoryAdapter
from debridarr.infrastructure.metadata import CinemetaClient, HttpxTmdbClient

_CINEMETA = "https://cinemeta.local"
_TMDB = "https://api.themoviedb.org/3"


class TestCinemetaClient:
    @respx.mock
    async def test_movie(self) -> None:
        route = respx.get(f"{_CINEMETA}/meta/movie/tt0133093.json").respond(
            200, json={"meta": {"name": "The Matrix", "releaseInfo": "1999"}}
        )
        async with httpx.AsyncClient() as client:
            cinemeta = CinemetaClient(http_client=client, cache=MemoryAdapter(), base_url=_CINEMETA)
            query = parse_media_id("movie", "tt0133093")
            media = await cinemeta.get_movie(query)
            await cinemeta.get_movie(query)
        assert media.name == "The Matrix"
        assert media.year == 1999
        assert route.call_count == 1

    @respx.mock
    async def test_series_episodes_sorted(self) -> None:
        respx.get(f"{_CINEMETA}/meta/series/tt0944947.json").respond(
            200,
            json={
                "meta": {
                    "name": "Game of Thrones",
                    "year": "2011-2019",
                    "videos": [
                        {"season": 1, "episode": 2},
                        {"season": 0, "episode": 1},
                        {"season": 1, "episode": 1},
                        {"season": 1, "episode": 1},
                    ],
                }
            },
        )
        async with httpx.AsyncClient() as client:
            cinemeta = CinemetaClient(http_client=client, cache=MemoryAdapter(), base_url=_CINEMETA)
            media = await cinemeta.get_episode(parse_media_id("series", "tt0944947:1:1"))
        assert media.year == 2011
        assert media.episodes == (EpisodeRef(1, 1), EpisodeRef(1, 2))
        assert media.next_episode() == EpisodeRef(1, 2)

    @respx.mock
    async def test_unknown_id(self) -> None:
        respx.get(f"{_CINEMETA}/meta/movie/tt0.json").respond(200, json={})
        async with httpx.AsyncClient() as client:
            cinemeta = CinemetaClient(http_client=client, cache=MemoryAdapter(), base_url=_CINEMETA)
            with pytest.raises(MediaNotFound):
                await cinemeta.get_movie(parse_media_id("movie", "tt0"))

    @respx.mock
    async def test_http_error_is_not_found(self) -> None:
        respx.get(f"{_CINEMETA}/meta/movie/tt1.json").respond(503)
        async with httpx.AsyncClient() as client:
            cinemeta = CinemetaClient(http_client=client, cache=MemoryAdapter(), base_url=_CINEMETA)
            with pytest.raises(MediaNotFound):
                await cinemeta.get_movie(parse_media_id("movie", "tt1"))


class TestHttpxTmdbClient:
    @respx.mock
    async def test_movie_original_title_without_language(self) -> None:
        respx.get(f"{_TMDB}/find/tt0133093").respond(
            200, json={"movie_results": [{"id": 603, "title": "The Matrix"}]}
        )
        respx.get(f"{_TMDB}/movie/603").respond(
            200,
            json={"title": "Matrix", "original_title": "The Matrix", "release_date": "1999-03-30"},
        )
        async with httpx.AsyncClient() as client:
            tmdb = HttpxTmdbClient(access_token="tok", http_client=client, cache=MemoryAdapter())
            media = await tmdb.get_movie(parse_media_id("movie", "tt0133093"))
        assert media.name == "The Matrix"
        assert media.year == 1999

    @respx.mock
    async def test_movie_localized_title(self) -> None:
        respx.get(f"{_TMDB}/find/tt0133093").respond(
            200, json={"movie_results": [{"id": 603}]}
        )
        details = respx.get(f"{_TMDB}/movie/603").respond(
            200, json={"title": "Matrix", "original_title": "The Matrix"}
        )
        async with httpx.AsyncClient() as client:
            tmdb = HttpxTmdbClient(access_token="tok", http_client=client, cache=MemoryAdapter())
            media = await tmdb.get_movie(parse_media_id("movie", "tt0133093"), "fr")
        assert media.name == "Matrix"
        assert details.calls[0].request.url.params["language"] == "fr"
        assert details.calls[0].request.headers["Authorization"] == "Bearer tok"

    @respx.mock
    async def test_series_episode_list(self) -> None:
        respx.get(f"{_TMDB}/find/tt0944947").respond(200, json={"tv_results": [{"id": 1399}]})
        respx.get(f"{_TMDB}/tv/1399").respond(
            200,
            json={
                "name": "Game of Thrones",
                "original_name": "Game of Thrones",
                "first_air_date": "2011-04-17",
                "seasons": [
                    {"season_number": 0, "episode_count": 5},
                    {"season_number": 1, "episode_count": 2},
                    {"season_number": 2, "episode_count": 1},
                ],
            },
        )
        async with httpx.AsyncClient() as client:
            tmdb = HttpxTmdbClient(access_token="tok", http_client=client, cache=MemoryAdapter())
            media = await tmdb.get_episode(parse_media_id("series", "tt0944947:1:2"))
        assert media.episodes == (EpisodeRef(1, 1), EpisodeRef(1, 2), EpisodeRef(2, 1))
        assert media.next_episode() == EpisodeRef(2, 1)

    @respx.mock
    async def test_not_found(self) -> None:
        respx.get(f"{_TMDB}/find/tt0").respond(200, json={"movie_results": []})
        async with httpx.AsyncClient() as client:
            tmdb = HttpxTmdbClient(access_token="tok", http_client=client, cache=MemoryAdapter())
            with pytest.raises(MediaNotFound):
                await tmdb.get_movie(parse_media_id("movie", "tt0"))

    @respx.mock
    async def test_invalid_token(self) -> None:
        respx.get(f"{_TMDB}/find/tt1").respond(401)
        async with httpx.AsyncClient() as client:
            tmdb = HttpxTmdbClient(access_token="bad", http_client=client, cache=MemoryAdapter())
            with pytest.raises(MediaNotFound):
                await tmdb.get_movie(parse_media_id("movie", "tt1"))
