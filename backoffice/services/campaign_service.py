"""
backoffice.services.campaign_service — Locale-Campaign Management
===================================================================

A locale-campaign (a campaign scoped to one country and one language) owns
the content rows the Galaxy import writes for it.  The database has no
foreign keys from those rows to ``campaign_countries_languages``, so
removal is an explicit ordered cleanup, children first:

    contents_series_rubrics
    contents_rubrics
    contents_series_episodes_free
    contents_series_episodes
    contents_series
    campaign_countries_languages

Each step commits on its own and logs its row count.  Every step is a
delete-by-key, so re-running after a failure picks up where it stopped.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError

from backoffice.database.engine import get_session
from backoffice.database.models import (
    CampaignLocale,
    ContentRubric,
    ContentSeries,
    FreeEpisode,
    SeriesEpisode,
    SeriesRubric,
)
from backoffice.errors import CascadeDeleteError
from backoffice.services.admin_service import log_admin_action, row_to_dict

logger = logging.getLogger(__name__)

# (table name, model, column holding the locale-campaign id), children first.
CAMPAIGN_CLEANUP_STEPS = (
    ("contents_series_rubrics", SeriesRubric, SeriesRubric.campaign_countries_languages_id),
    ("contents_rubrics", ContentRubric, ContentRubric.campaign_countries_languages_id),
    ("contents_series_episodes_free", FreeEpisode, FreeEpisode.campaign_countries_languages_id),
    ("contents_series_episodes", SeriesEpisode, SeriesEpisode.campaign_countries_languages_id),
    ("contents_series", ContentSeries, ContentSeries.campaign_countries_languages_id),
    ("campaign_countries_languages", CampaignLocale, CampaignLocale.id),
)


# ---------------------------------------------------------------------------
# Reads / creation
# ---------------------------------------------------------------------------

def list_campaign_locales(engine: Engine) -> list[dict]:
    with get_session(engine) as session:
        rows = session.scalars(
            select(CampaignLocale).order_by(CampaignLocale.campaign_id, CampaignLocale.country_code)
        ).all()
        return [row_to_dict(r) for r in rows]


def create_campaign_locale(
    engine: Engine,
    *,
    campaign_id: int,
    country_code: str | None = None,
    language_code: str | None = None,
) -> dict:
    with get_session(engine) as session:
        row = CampaignLocale(
            campaign_id=campaign_id,
            country_code=country_code,
            language_code=language_code,
        )
        session.add(row)
        session.flush()
        return row_to_dict(row)


# ---------------------------------------------------------------------------
# Cascade delete
# ---------------------------------------------------------------------------

def delete_campaign_locale(
    engine: Engine, campaign_locale_id: str, *, actor_id: str | None = None,
) -> dict:
    """Remove a locale-campaign and all content scoped to it.

    Returns ``{"campaign_locale_id", "deleted": {table: count}, "timestamp"}``.
    A missing locale-campaign is not an error: every step simply deletes
    nothing.

    Raises
    ------
    CascadeDeleteError
        If a step fails; ``step`` names it and ``completed`` lists the
        steps already committed.
    """
    with get_session(engine) as session:
        before = row_to_dict(session.get(CampaignLocale, campaign_locale_id))

    deleted: dict[str, int] = {}
    for table, model, column in CAMPAIGN_CLEANUP_STEPS:
        try:
            with get_session(engine) as session:
                result = session.execute(delete(model).where(column == campaign_locale_id))
                deleted[table] = result.rowcount or 0
        except SQLAlchemyError as exc:
            logger.error(
                "Cascade delete of %s failed at %s: %s", campaign_locale_id, table, exc,
            )
            raise CascadeDeleteError(table, list(deleted), exc) from exc
        logger.info("Deleted %d rows from %s for %s", deleted[table], table, campaign_locale_id)

    if actor_id is not None:
        with get_session(engine) as session:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="DELETE",
                target_table="campaign_countries_languages",
                target_id=campaign_locale_id,
                before=before,
                after=None,
                reason=f"cascade: {deleted}",
            )

    return {
        "campaign_locale_id": campaign_locale_id,
        "deleted": deleted,
        "timestamp": datetime.now(UTC).isoformat(),
    }
