"""
tests/test_event_service.py — Event & Category Management (SQLite)
===================================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from backoffice.database.models import AdminLog, EventTranslation
from backoffice.errors import ConflictError, NotFoundError
from backoffice.services import event_service as es
from backoffice.services import translation_service as ts


@pytest.fixture
def category(db_engine):
    return es.create_category(db_engine, name="Engagement", category_position=1)


@pytest.fixture
def event(db_engine, category):
    return es.create_event(
        db_engine, event_type="daily_login", coins_reward=10, category_id=category["id"],
    )


def _audit(engine, **filters) -> list[AdminLog]:
    with Session(engine) as s:
        return s.query(AdminLog).filter_by(**filters).all()


# ===========================================================================
# Events
# ===========================================================================
class TestCreateEvent:
    def test_returns_full_row(self, db_engine, category):
        row = es.create_event(
            db_engine, event_type="first_purchase", coins_reward=50,
            category_id=category["id"], metadata={"threshold": 1},
        )
        assert row["event_type"] == "first_purchase"
        assert row["coins_reward"] == 50
        assert row["event_type_category"] == category["id"]
        assert row["metadata"] == {"threshold": 1}
        assert es.get_event(db_engine, row["id"])["event_type"] == "first_purchase"

    def test_duplicate_event_type_is_conflict(self, db_engine, event):
        with pytest.raises(ConflictError) as exc_info:
            es.create_event(db_engine, event_type="daily_login")
        assert exc_info.value.kind == "conflict"
        assert len(es.list_events(db_engine)) == 1

    def test_unknown_category_is_not_found(self, db_engine):
        with pytest.raises(NotFoundError):
            es.create_event(db_engine, event_type="x", category_id="missing")
        assert es.list_events(db_engine) == []

    def test_actor_writes_audit_row(self, db_engine):
        row = es.create_event(db_engine, event_type="x", actor_id="7")
        [entry] = _audit(db_engine, target_table="gamification_events")
        assert entry.action_type == "CREATE"
        assert entry.target_id == row["id"]


class TestUpdateEvent:
    def test_partial_edit(self, db_engine, event):
        row = es.update_event(db_engine, event["id"], {"coins_reward": 25, "unknown": 1})
        assert row["coins_reward"] == 25
        assert row["event_type"] == "daily_login"

    def test_none_clears_category_only(self, db_engine, event):
        row = es.update_event(db_engine, event["id"], {"category_id": None, "event_type": None})
        assert row["event_type_category"] is None
        assert row["event_type"] == "daily_login"

    def test_rename_to_taken_type_is_conflict(self, db_engine, event):
        other = es.create_event(db_engine, event_type="weekly_streak")
        with pytest.raises(ConflictError):
            es.update_event(db_engine, other["id"], {"event_type": "daily_login"})
        assert es.get_event(db_engine, other["id"])["event_type"] == "weekly_streak"

    def test_unknown_category_is_not_found(self, db_engine, event):
        with pytest.raises(NotFoundError):
            es.update_event(db_engine, event["id"], {"category_id": "missing"})

    def test_missing_event_returns_none(self, db_engine):
        assert es.update_event(db_engine, "nope", {"coins_reward": 1}) is None

    def test_audit_keeps_before_and_after(self, db_engine, event):
        es.update_event(db_engine, event["id"], {"coins_reward": 99}, actor_id="7")
        [entry] = _audit(db_engine, action_type="UPDATE")
        assert entry.before_snapshot["coins_reward"] == 10
        assert entry.after_snapshot["coins_reward"] == 99


class TestToggleAndDelete:
    def test_set_inactive_hides_from_active_catalog(self, db_engine, event):
        row = es.set_event_active(db_engine, event["id"], False, actor_id="7")
        assert row["is_active"] is False
        assert ts.list_events(db_engine, active_only=True) == []
        assert len(ts.list_events(db_engine)) == 1

    def test_set_active_on_missing_event(self, db_engine):
        assert es.set_event_active(db_engine, "nope", True) is None

    def test_delete_removes_translations(self, db_engine, event):
        ts.create_translation(db_engine, event_id=event["id"], language_code="fr", title="A")
        ts.create_translation(db_engine, event_id=event["id"], language_code="en", title="B")

        assert es.delete_event(db_engine, event["id"], actor_id="7") is True
        assert es.get_event(db_engine, event["id"]) is None
        with Session(db_engine) as s:
            assert s.query(EventTranslation).count() == 0
        [entry] = _audit(db_engine, action_type="DELETE", target_table="gamification_events")
        assert entry.reason == "cascade: 2 translations"

    def test_delete_missing_event(self, db_engine):
        assert es.delete_event(db_engine, "nope") is False


# ===========================================================================
# Categories
# ===========================================================================
class TestCategories:
    def test_list_ordered_by_position(self, db_engine):
        es.create_category(db_engine, name="Later", category_position=2)
        es.create_category(db_engine, name="First", category_position=0)
        assert [c["name"] for c in es.list_categories(db_engine)] == ["First", "Later"]

    def test_update(self, db_engine, category):
        row = es.update_category(
            db_engine, category["id"], {"name": "Loyalty", "description": "Repeat visits"},
            actor_id="7",
        )
        assert row["name"] == "Loyalty"
        assert row["description"] == "Repeat visits"
        [entry] = _audit(db_engine, target_table="event_categories", action_type="UPDATE")
        assert entry.before_snapshot["name"] == "Engagement"

    def test_update_ignores_null_name(self, db_engine, category):
        row = es.update_category(db_engine, category["id"], {"name": None})
        assert row["name"] == "Engagement"

    def test_update_missing(self, db_engine):
        assert es.update_category(db_engine, "nope", {"name": "x"}) is None

    def test_delete_detaches_events(self, db_engine, category, event):
        assert es.delete_category(db_engine, category["id"], actor_id="7") is True
        assert es.list_categories(db_engine) == []
        assert es.get_event(db_engine, event["id"])["event_type_category"] is None
        [entry] = _audit(db_engine, target_table="event_categories", action_type="DELETE")
        assert entry.reason == "detached 1 events"

    def test_delete_missing(self, db_engine):
        assert es.delete_category(db_engine, "nope") is False
