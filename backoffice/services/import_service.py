"""
backoffice.services.import_service — Galaxy Content Import
============================================================

Pulls series, episodes and rubric links from the Galaxy feed for every
locale-campaign and upserts them into the ``contents_*`` tables, marking
episodes free according to the ``free_episodes_count`` setting.

Failure isolation:
    * one episode failing to write is logged and skipped;
    * one campaign failing (feed error, malformed payload, database error)
      is logged, listed in ``failed_campaigns`` and the loop moves on;
    * a missing ``GALAXY_API_TOKEN`` stops the run before any work.

After each campaign is imported, free markers whose episode now sits past
the threshold are removed (see :func:`remove_stale_free_episodes`).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError

from backoffice.database.engine import get_session, run_db
from backoffice.database.models import (
    CampaignLocale,
    ContentSeries,
    FreeEpisode,
    SeriesEpisode,
    SeriesRubric,
)
from backoffice.engine.eligibility import is_free
from backoffice.errors import (
    ConfigurationError,
    GalaxyFeedError,
    SourceReadError,
)
from backoffice.services.galaxy_client import GalaxyClient, GalaxyEpisode, GalaxySeries
from backoffice.services.settings_service import get_free_episodes_count

logger = logging.getLogger(__name__)


class ContentFeed(Protocol):
    """Anything that can list a locale-campaign's series."""

    async def fetch_series(self, campaign_locale_id: str) -> list[GalaxySeries]: ...


@dataclass(slots=True)
class ImportStats:
    campaigns_processed: int = 0
    campaigns_failed: int = 0
    series_imported: int = 0
    episodes_imported: int = 0
    episodes_failed: int = 0
    free_episodes_marked: int = 0
    free_episodes_removed: int = 0
    free_episodes_count: int = 0


@dataclass(slots=True)
class SeriesOutcome:
    episodes_imported: int = 0
    episodes_failed: int = 0
    free_episodes_marked: int = 0


# ---------------------------------------------------------------------------
# Synchronous writers (run through run_db)
# ---------------------------------------------------------------------------

def list_campaign_locale_ids(engine: Engine) -> list[str]:
    """Ids of every locale-campaign, oldest first."""
    with get_session(engine) as session:
        return list(session.scalars(
            select(CampaignLocale.id).order_by(CampaignLocale.created_at, CampaignLocale.id)
        ).all())


def _upsert_series(session, series: GalaxySeries, campaign_id: str) -> None:
    session.merge(ContentSeries(
        serie_id=series.id,
        campaign_countries_languages_id=campaign_id,
        title=series.title,
        description=series.description,
        url_covers=series.cover_url,
        updated_at=datetime.now(UTC),
    ))


def _link_rubrics(session, series_id: int, rubric_ids: Iterable[int], campaign_id: str) -> None:
    for rubric_id in rubric_ids:
        session.merge(SeriesRubric(
            serie_id=series_id,
            id_rubric=rubric_id,
            campaign_countries_languages_id=campaign_id,
            updated_at=datetime.now(UTC),
        ))


def import_episode(
    engine: Engine, episode: GalaxyEpisode, campaign_id: str, free_count: int,
) -> bool:
    """Upsert one episode (and its free marker) in its own transaction.

    Returns ``True`` when the episode was marked free.
    """
    with get_session(engine) as session:
        session.merge(SeriesEpisode(
            series_id=episode.series_id,
            episode_id=episode.id,
            season_id=episode.season_id,
            campaign_countries_languages_id=campaign_id,
            episode_position=episode.position,
            season_position=episode.season_position,
            url_streaming_no_drm=episode.streaming_url,
            title=episode.title,
            description=episode.description,
            duration=episode.duration,
            product_year=episode.product_year,
            updated_at=datetime.now(UTC),
        ))
        if not is_free(episode.position, free_count):
            return False
        session.merge(FreeEpisode(
            episode_id=episode.id,
            campaign_countries_languages_id=campaign_id,
            updated_at=datetime.now(UTC),
        ))
    logger.debug(
        "Episode %d marked free (position %d <= %d)", episode.id, episode.position, free_count,
    )
    return True


def import_series(
    engine: Engine, series: GalaxySeries, campaign_id: str, free_count: int,
) -> SeriesOutcome:
    """Upsert a series with its rubric links, then each of its episodes.

    The series row and rubric links share one transaction; if that fails the
    error propagates and the campaign is marked failed.  Episode failures
    are counted and skipped.
    """
    with get_session(engine) as session:
        _upsert_series(session, series, campaign_id)
        _link_rubrics(session, series.id, series.rubrics, campaign_id)

    outcome = SeriesOutcome()
    for episode in series.episodes:
        try:
            marked = import_episode(engine, episode, campaign_id, free_count)
        except SQLAlchemyError as exc:
            outcome.episodes_failed += 1
            logger.warning(
                "Skipping episode %d of series %d (campaign %s): %s",
                episode.id, series.id, campaign_id, exc,
            )
            continue
        outcome.episodes_imported += 1
        if marked:
            outcome.free_episodes_marked += 1
    return outcome


def remove_stale_free_episodes(engine: Engine, campaign_id: str, free_count: int) -> int:
    """Delete *campaign_id*'s free markers that no longer qualify.

    A marker is stale when its episode has at least one row in the campaign
    with ``episode_position > free_count`` and none at or below it.  Markers
    whose episode has no row at all, and other campaigns' markers, are left
    alone.  Returns the number of markers removed.
    """
    with get_session(engine) as session:
        past_threshold = select(SeriesEpisode.episode_id).where(
            SeriesEpisode.campaign_countries_languages_id == campaign_id,
            SeriesEpisode.episode_position > free_count,
        )
        still_free = select(SeriesEpisode.episode_id).where(
            SeriesEpisode.campaign_countries_languages_id == campaign_id,
            SeriesEpisode.episode_position <= free_count,
        )
        ids = session.scalars(
            select(FreeEpisode.episode_id).where(
                FreeEpisode.campaign_countries_languages_id == campaign_id,
                FreeEpisode.episode_id.in_(past_threshold),
                FreeEpisode.episode_id.not_in(still_free),
            )
        ).all()
        if not ids:
            return 0

        result = session.execute(
            delete(FreeEpisode).where(
                FreeEpisode.campaign_countries_languages_id == campaign_id,
                FreeEpisode.episode_id.in_(ids),
            )
        )
        removed = result.rowcount or 0

    logger.info(
        "Removed %d stale free episodes for campaign %s (threshold %d)",
        removed, campaign_id, free_count,
    )
    return removed


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def _result(
    success: bool,
    message: str,
    stats: ImportStats,
    failed_campaigns: list[dict],
    error_kind: str | None = None,
) -> dict:
    data = {
        "success": success,
        "message": message,
        "stats": asdict(stats),
        "failed_campaigns": failed_campaigns,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if error_kind is not None:
        data["error_kind"] = error_kind
    return data


async def _import_campaign(
    engine: Engine, feed: ContentFeed, campaign_id: str, free_count: int, stats: ImportStats,
) -> None:
    series_list = await feed.fetch_series(campaign_id)
    for series in series_list:
        outcome = await run_db(import_series, engine, series, campaign_id, free_count)
        stats.series_imported += 1
        stats.episodes_imported += outcome.episodes_imported
        stats.episodes_failed += outcome.episodes_failed
        stats.free_episodes_marked += outcome.free_episodes_marked
    stats.free_episodes_removed += await run_db(
        remove_stale_free_episodes, engine, campaign_id, free_count,
    )


async def run_galaxy_import(engine: Engine, feed: ContentFeed | None = None) -> dict:
    """Import the Galaxy catalog for every locale-campaign.

    *feed* defaults to :meth:`GalaxyClient.from_env`.  Returns the
    structured result; ``BackofficeError`` subclasses never escape.
    A failed result without ``error_kind`` means there was nothing to
    import.
    """
    stats = ImportStats()
    failed_campaigns: list[dict] = []
    logger.info("Starting Galaxy import")

    try:
        if feed is None:
            feed = GalaxyClient.from_env()
        try:
            campaign_ids = await run_db(list_campaign_locale_ids, engine)
            free_count = await run_db(get_free_episodes_count, engine)
        except SQLAlchemyError as exc:
            raise SourceReadError(f"Failed to read import configuration: {exc}") from exc
    except (ConfigurationError, SourceReadError) as exc:
        logger.error("Galaxy import aborted (%s): %s", exc.kind, exc)
        return _result(False, str(exc), stats, failed_campaigns, exc.kind.value)

    stats.free_episodes_count = free_count
    if not campaign_ids:
        logger.warning("No campaign locales found; import cannot proceed")
        return _result(
            False,
            "No campaign locales configured. Please add campaigns first.",
            stats,
            failed_campaigns,
        )

    logger.info(
        "Importing %d campaign locales (free episodes count: %d)",
        len(campaign_ids), free_count,
    )
    for campaign_id in campaign_ids:
        try:
            await _import_campaign(engine, feed, campaign_id, free_count, stats)
        except (GalaxyFeedError, SQLAlchemyError) as exc:
            stats.campaigns_failed += 1
            failed_campaigns.append({"campaign_id": campaign_id, "error": str(exc)})
            logger.error("Error processing campaign %s: %s", campaign_id, exc)
            continue
        stats.campaigns_processed += 1
        logger.info("Campaign %s processed successfully", campaign_id)

    logger.info("Galaxy import finished: %s", asdict(stats))

    if stats.campaigns_processed == 0:
        return _result(
            False,
            f"All {stats.campaigns_failed} campaigns failed to import",
            stats,
            failed_campaigns,
            GalaxyFeedError.kind.value,
        )
    message = "Galaxy import completed successfully"
    if failed_campaigns:
        message = f"Galaxy import completed with {len(failed_campaigns)} failed campaign(s)"
    return _result(True, message, stats, failed_campaigns)
