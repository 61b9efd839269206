"""
tests/test_galaxy_client.py — Galaxy Feed Client
=================================================
HTTP is served by ``httpx.MockTransport``; nothing leaves the process.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from backoffice.errors import ConfigurationError, GalaxyFeedError
from backoffice.services.galaxy_client import GalaxyClient, parse_series_payload


def run_async(coro):
    """Helper to run an async function synchronously in tests."""
    return asyncio.get_event_loop_policy().new_event_loop().run_until_complete(coro)


SERIES_PAYLOAD = {
    "data": [
        {
            "id": 12,
            "title": "Night Shift",
            "description": "A hospital drama",
            "cover_url": "https://cdn.example.com/12.jpg",
            "rubrics": [3, 9],
            "episodes": [
                {
                    "id": 1201, "series_id": 12, "season_id": 1, "position": 1,
                    "season_position": 1, "title": "Pilot", "duration": 1500,
                    "product_year": 2021, "streaming_url": "https://cdn.example.com/1201.m3u8",
                },
                {"id": 1202, "series_id": 12, "season_id": 1, "position": 2},
            ],
        },
    ],
}


def _client(handler) -> GalaxyClient:
    return GalaxyClient(
        "tok-123",
        base_url="https://galaxy.test",
        transport=httpx.MockTransport(handler),
    )


class TestFetchSeries:
    def test_parses_series_and_episodes(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=SERIES_PAYLOAD)

        series = run_async(_client(handler).fetch_series("cl-1"))

        assert seen["url"] == "https://galaxy.test/series?campaign=cl-1"
        assert seen["auth"] == "Bearer tok-123"
        assert len(series) == 1
        s = series[0]
        assert (s.id, s.title, s.rubrics) == (12, "Night Shift", (3, 9))
        assert s.episodes[0].streaming_url == "https://cdn.example.com/1201.m3u8"
        assert s.episodes[1].title is None
        assert s.episodes[1].position == 2

    def test_non_2xx_raises_feed_error(self):
        client = _client(lambda request: httpx.Response(502))
        with pytest.raises(GalaxyFeedError, match="502"):
            run_async(client.fetch_series("cl-1"))

    def test_transport_error_raises_feed_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GalaxyFeedError):
            run_async(_client(handler).fetch_series("cl-1"))

    def test_non_json_body_raises_feed_error(self):
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(GalaxyFeedError):
            run_async(client.fetch_series("cl-1"))

    def test_missing_data_array_raises_feed_error(self):
        client = _client(lambda request: httpx.Response(200, json={"items": []}))
        with pytest.raises(GalaxyFeedError, match="data"):
            run_async(client.fetch_series("cl-1"))

    def test_empty_data_is_fine(self):
        client = _client(lambda request: httpx.Response(200, json={"data": []}))
        assert run_async(client.fetch_series("cl-1")) == []


class TestParsePayload:
    def test_episode_missing_position_is_malformed(self):
        payload = {"data": [{"id": 1, "title": "x", "episodes": [{"id": 2, "series_id": 1, "season_id": 1}]}]}
        with pytest.raises(GalaxyFeedError):
            parse_series_payload(payload)

    def test_non_numeric_id_is_malformed(self):
        with pytest.raises(GalaxyFeedError):
            parse_series_payload({"data": [{"id": "abc", "title": "x"}]})

    def test_series_without_episodes_or_rubrics(self):
        [series] = parse_series_payload({"data": [{"id": 1, "title": "x"}]})
        assert series.episodes == ()
        assert series.rubrics == ()


class TestFromEnv:
    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("GALAXY_API_TOKEN", raising=False)
        with pytest.raises(ConfigurationError):
            GalaxyClient.from_env()

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("GALAXY_API_TOKEN", "abc")
        monkeypatch.setenv("GALAXY_API_BASE_URL", "https://galaxy.internal/")
        client = GalaxyClient.from_env()
        assert client._base_url == "https://galaxy.internal"
