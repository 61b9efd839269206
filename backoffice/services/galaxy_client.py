"""
backoffice.services.galaxy_client — Galaxy Content Feed
=========================================================

Thin async client for the upstream Galaxy catalog API.  One request per
locale-campaign::

    GET {GALAXY_API_BASE_URL}/series?campaign=<campaign_locale_id>
    Authorization: Bearer <GALAXY_API_TOKEN>

    {"data": [{"id": 1, "title": "...", "episodes": [...], "rubrics": [4, 7]}]}

Anything that is not a 2xx response carrying that shape raises
:class:`~backoffice.errors.GalaxyFeedError`, which the import treats as a
failure of that campaign only.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import httpx

from backoffice.errors import ConfigurationError, GalaxyFeedError

logger = logging.getLogger(__name__)

DEFAULT_GALAXY_API_BASE_URL = "https://api.galaxy.example.com"


@dataclass(frozen=True, slots=True)
class GalaxyEpisode:
    id: int
    series_id: int
    season_id: int
    position: int
    season_position: int | None = None
    title: str | None = None
    description: str | None = None
    duration: int | None = None
    product_year: int | None = None
    streaming_url: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> GalaxyEpisode:
        return cls(
            id=int(data["id"]),
            series_id=int(data["series_id"]),
            season_id=int(data["season_id"]),
            position=int(data["position"]),
            season_position=_optional_int(data.get("season_position")),
            title=data.get("title") or None,
            description=data.get("description") or None,
            duration=_optional_int(data.get("duration")),
            product_year=_optional_int(data.get("product_year")),
            streaming_url=data.get("streaming_url") or None,
        )


@dataclass(frozen=True, slots=True)
class GalaxySeries:
    id: int
    title: str
    description: str | None = None
    cover_url: str | None = None
    episodes: tuple[GalaxyEpisode, ...] = field(default_factory=tuple)
    rubrics: tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> GalaxySeries:
        return cls(
            id=int(data["id"]),
            title=str(data["title"]),
            description=data.get("description") or None,
            cover_url=data.get("cover_url") or None,
            episodes=tuple(GalaxyEpisode.from_payload(e) for e in data.get("episodes") or ()),
            rubrics=tuple(int(r) for r in data.get("rubrics") or ()),
        )


def _optional_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    return int(value)


def parse_series_payload(payload: Any) -> list[GalaxySeries]:
    """Validate a ``/series`` response body and convert it to dataclasses.

    Raises
    ------
    GalaxyFeedError
        If the body has no ``data`` list or an entry is missing required
        fields.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise GalaxyFeedError("Galaxy response has no 'data' array")
    try:
        return [GalaxySeries.from_payload(item) for item in payload["data"]]
    except (KeyError, TypeError, ValueError) as exc:
        raise GalaxyFeedError(f"Malformed Galaxy series payload: {exc!r}") from exc


class GalaxyClient:
    """Fetches series (with episodes and rubric ids) per locale-campaign."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_GALAXY_API_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_env(cls) -> GalaxyClient:
        """Build a client from ``GALAXY_API_TOKEN`` / ``GALAXY_API_BASE_URL``.

        Raises
        ------
        ConfigurationError
            If ``GALAXY_API_TOKEN`` is not set.
        """
        token = os.getenv("GALAXY_API_TOKEN")
        if not token:
            raise ConfigurationError(
                "Galaxy API token not configured. Please set GALAXY_API_TOKEN."
            )
        return cls(
            token,
            base_url=os.getenv("GALAXY_API_BASE_URL") or DEFAULT_GALAXY_API_BASE_URL,
        )

    async def fetch_series(self, campaign_locale_id: str) -> list[GalaxySeries]:
        """Return every series published for *campaign_locale_id*."""
        logger.info("Fetching Galaxy series for campaign %s", campaign_locale_id)

        # Single client per request, explicit timeout + retry
        transport = self._transport or httpx.AsyncHTTPTransport(retries=1)
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=transport,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
            ) as client:
                resp = await client.get("/series", params={"campaign": campaign_locale_id})
        except httpx.HTTPError as exc:
            raise GalaxyFeedError(
                f"Galaxy API request failed for campaign {campaign_locale_id}: {exc!r}"
            ) from exc

        if resp.status_code // 100 != 2:
            raise GalaxyFeedError(
                f"Galaxy API request failed: {resp.status_code} {resp.reason_phrase}"
            )
        try:
            payload = resp.json()
        except ValueError as exc:
            raise GalaxyFeedError("Galaxy API returned a non-JSON body") from exc

        series = parse_series_payload(payload)
        logger.info("Galaxy returned %d series for campaign %s", len(series), campaign_locale_id)
        return series
