"""
tests/test_import_service.py — Galaxy Import Orchestration (SQLite)
====================================================================
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from backoffice.database.models import (
    CampaignLocale,
    ContentSeries,
    FreeEpisode,
    SeriesEpisode,
    SeriesRubric,
)
from backoffice.errors import GalaxyFeedError
from backoffice.services import import_service
from backoffice.services.galaxy_client import GalaxyEpisode, GalaxySeries
from backoffice.services.import_service import remove_stale_free_episodes, run_galaxy_import
from backoffice.services.settings_service import set_free_episodes_count


def run_async(coro):
    """Helper to run an async function synchronously in tests."""
    return asyncio.get_event_loop_policy().new_event_loop().run_until_complete(coro)


def _series(series_id: int, positions: list[int], rubrics=(4,)) -> GalaxySeries:
    return GalaxySeries(
        id=series_id,
        title=f"Series {series_id}",
        episodes=tuple(
            GalaxyEpisode(
                id=series_id * 100 + pos,
                series_id=series_id,
                season_id=1,
                position=pos,
                title=f"Episode {pos}",
            )
            for pos in positions
        ),
        rubrics=tuple(rubrics),
    )


class FakeFeed:
    """Serves canned series per campaign; raises for campaigns in *failing*."""

    def __init__(self, catalog: dict[str, list[GalaxySeries]], failing=()):
        self.catalog = catalog
        self.failing = set(failing)
        self.calls: list[str] = []

    async def fetch_series(self, campaign_locale_id):
        self.calls.append(campaign_locale_id)
        if campaign_locale_id in self.failing:
            raise GalaxyFeedError("Galaxy API request failed: 502 Bad Gateway")
        return self.catalog.get(campaign_locale_id, [])


def _campaign(engine, campaign_id=1, country="FR", language="fr") -> str:
    with Session(engine) as s:
        row = CampaignLocale(campaign_id=campaign_id, country_code=country, language_code=language)
        s.add(row)
        s.commit()
        return row.id


def _free_ids(engine, campaign_id):
    with Session(engine) as s:
        return sorted(
            r.episode_id for r in s.query(FreeEpisode).filter_by(
                campaign_countries_languages_id=campaign_id,
            )
        )


# ===========================================================================
# Happy path
# ===========================================================================
class TestImport:
    def test_imports_series_episodes_rubrics_and_free_markers(self, db_engine):
        cid = _campaign(db_engine)
        feed = FakeFeed({cid: [_series(1, [1, 2, 3, 4, 5], rubrics=(4, 7))]})

        result = run_async(run_galaxy_import(db_engine, feed))

        assert result["success"] is True
        assert result["stats"]["campaigns_processed"] == 1
        assert result["stats"]["series_imported"] == 1
        assert result["stats"]["episodes_imported"] == 5
        assert result["stats"]["free_episodes_marked"] == 3
        assert result["stats"]["free_episodes_count"] == 3
        assert _free_ids(db_engine, cid) == [101, 102, 103]
        with Session(db_engine) as s:
            assert s.query(ContentSeries).count() == 1
            assert s.query(SeriesEpisode).count() == 5
            assert s.query(SeriesRubric).count() == 2

    def test_reimport_is_idempotent(self, db_engine):
        cid = _campaign(db_engine)
        feed = FakeFeed({cid: [_series(1, [1, 2, 3, 4])]})

        run_async(run_galaxy_import(db_engine, feed))
        run_async(run_galaxy_import(db_engine, feed))

        with Session(db_engine) as s:
            assert s.query(SeriesEpisode).count() == 4
            assert s.query(FreeEpisode).count() == 3

    def test_threshold_read_from_settings(self, db_engine):
        cid = _campaign(db_engine)
        set_free_episodes_count(db_engine, 1)
        feed = FakeFeed({cid: [_series(1, [1, 2, 3])]})

        result = run_async(run_galaxy_import(db_engine, feed))

        assert result["stats"]["free_episodes_count"] == 1
        assert _free_ids(db_engine, cid) == [101]

    def test_upsert_updates_changed_fields(self, db_engine):
        cid = _campaign(db_engine)
        run_async(run_galaxy_import(db_engine, FakeFeed({cid: [_series(1, [1])]})))
        renamed = GalaxySeries(id=1, title="Renamed", episodes=(), rubrics=())
        run_async(run_galaxy_import(db_engine, FakeFeed({cid: [renamed]})))

        with Session(db_engine) as s:
            assert s.get(ContentSeries, (1, cid)).title == "Renamed"


# ===========================================================================
# Free-marker cleanup
# ===========================================================================
class TestStaleFreeMarkers:
    def test_lowering_threshold_removes_markers(self, db_engine):
        cid = _campaign(db_engine)
        feed = FakeFeed({cid: [_series(1, [1, 2, 3, 4, 5])]})
        run_async(run_galaxy_import(db_engine, feed))
        assert _free_ids(db_engine, cid) == [101, 102, 103]

        set_free_episodes_count(db_engine, 1)
        result = run_async(run_galaxy_import(db_engine, feed))

        assert result["stats"]["free_episodes_removed"] == 2
        assert _free_ids(db_engine, cid) == [101]

    def test_other_campaigns_untouched(self, db_engine):
        cid_a = _campaign(db_engine, 1)
        cid_b = _campaign(db_engine, 2)
        feed = FakeFeed({cid_a: [_series(1, [1, 2, 3])], cid_b: [_series(1, [1, 2, 3])]})
        run_async(run_galaxy_import(db_engine, feed))

        assert remove_stale_free_episodes(db_engine, cid_a, 1) == 2
        assert _free_ids(db_engine, cid_a) == [101]
        assert _free_ids(db_engine, cid_b) == [101, 102, 103]

    def test_marker_without_episode_row_is_kept(self, db_engine):
        cid = _campaign(db_engine)
        with Session(db_engine) as s:
            s.add(FreeEpisode(episode_id=999, campaign_countries_languages_id=cid))
            s.commit()
        assert remove_stale_free_episodes(db_engine, cid, 0) == 0
        assert _free_ids(db_engine, cid) == [999]

    def test_episode_qualifying_in_another_season_is_kept(self, db_engine):
        cid = _campaign(db_engine)
        with Session(db_engine) as s:
            for season, pos in ((1, 5), (2, 1)):
                s.add(SeriesEpisode(
                    series_id=1, episode_id=42, season_id=season,
                    campaign_countries_languages_id=cid, episode_position=pos,
                ))
            s.add(FreeEpisode(episode_id=42, campaign_countries_languages_id=cid))
            s.commit()
        assert remove_stale_free_episodes(db_engine, cid, 3) == 0


# ===========================================================================
# Failure handling
# ===========================================================================
class TestFailures:
    def test_no_campaigns(self, db_engine):
        feed = FakeFeed({})
        result = run_async(run_galaxy_import(db_engine, feed))

        assert result["success"] is False
        assert "No campaign locales configured" in result["message"]
        assert "error_kind" not in result
        assert feed.calls == []

    def test_failing_campaign_does_not_stop_others(self, db_engine):
        bad = _campaign(db_engine, 1)
        good = _campaign(db_engine, 2)
        feed = FakeFeed({good: [_series(1, [1, 2])]}, failing={bad})

        result = run_async(run_galaxy_import(db_engine, feed))

        assert result["success"] is True
        assert result["stats"]["campaigns_processed"] == 1
        assert result["stats"]["campaigns_failed"] == 1
        assert result["failed_campaigns"][0]["campaign_id"] == bad
        assert _free_ids(db_engine, good) == [101, 102]

    def test_every_campaign_failing_is_a_failed_run(self, db_engine):
        cid = _campaign(db_engine)
        result = run_async(run_galaxy_import(db_engine, FakeFeed({}, failing={cid})))
        assert result["success"] is False
        assert result["error_kind"] == "import_unit_error"

    def test_failing_episode_is_skipped(self, db_engine):
        cid = _campaign(db_engine)
        feed = FakeFeed({cid: [_series(1, [1, 2, 3])]})
        real = import_service.import_episode

        def flaky(engine, episode, campaign_id, free_count):
            if episode.position == 2:
                from sqlalchemy.exc import OperationalError
                raise OperationalError("INSERT", {}, Exception("locked"))
            return real(engine, episode, campaign_id, free_count)

        with patch.object(import_service, "import_episode", side_effect=flaky):
            result = run_async(run_galaxy_import(db_engine, feed))

        assert result["success"] is True
        assert result["stats"]["episodes_imported"] == 2
        assert result["stats"]["episodes_failed"] == 1
        assert _free_ids(db_engine, cid) == [101, 103]

    def test_missing_token_is_configuration_error(self, db_engine, monkeypatch):
        monkeypatch.delenv("GALAXY_API_TOKEN", raising=False)
        _campaign(db_engine)
        result = run_async(run_galaxy_import(db_engine))
        assert result["success"] is False
        assert result["error_kind"] == "configuration_error"


@pytest.mark.parametrize("positions,expected", [([1, 2, 3, 4], 3), ([4, 5], 0), ([], 0)])
def test_free_marked_count(db_engine, positions, expected):
    cid = _campaign(db_engine)
    result = run_async(run_galaxy_import(db_engine, FakeFeed({cid: [_series(1, positions)]})))
    assert result["stats"]["free_episodes_marked"] == expected
