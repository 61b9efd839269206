"""
backoffice.services.event_service — Event & Category Management
================================================================

Staff-side writes to the gamification catalog: events (create, edit,
toggle, delete) and the categories that group them.  The read side the
fan-out engine consumes lives in
:func:`backoffice.services.translation_service.list_events`.

Every mutation is audit-logged when an ``actor_id`` is supplied, in the
same transaction as the change.

Deleting an event removes its translations with it.  Deleting a category
detaches its events (``event_type_category`` becomes NULL) before the
category row goes.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.database.engine import get_session
from backoffice.database.models import EventCategory, GamificationEvent
from backoffice.errors import ConflictError, NotFoundError
from backoffice.services.admin_service import log_admin_action, row_to_dict

logger = logging.getLogger(__name__)

EVENTS_TABLE = "gamification_events"
CATEGORIES_TABLE = "event_categories"

# API field name -> model attribute.
EVENT_FIELDS: dict[str, str] = {
    "event_type": "event_type",
    "coins_reward": "coins_reward",
    "category_id": "event_type_category",
    "is_active": "is_active",
    "metadata": "metadata_",
    "event_position": "event_position",
}
# The only event field an edit may set back to NULL.
NULLABLE_EVENT_FIELDS = frozenset({"category_id"})

CATEGORY_FIELDS = frozenset({"name", "description", "category_position"})


def _require_category(session: Session, category_id: str | None) -> None:
    if category_id is not None and session.get(EventCategory, category_id) is None:
        raise NotFoundError(f"Event category {category_id} not found")


def _flush_event(session: Session, event_type: str) -> None:
    try:
        session.flush()
    except IntegrityError as exc:
        raise ConflictError(f"An event with type '{event_type}' already exists") from exc


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def list_events(engine: Engine, *, active_only: bool = False) -> list[dict]:
    """Full event rows for the admin console, ordered like the catalog."""
    with get_session(engine) as session:
        q = select(GamificationEvent).order_by(
            GamificationEvent.event_position, GamificationEvent.event_type,
        )
        if active_only:
            q = q.where(GamificationEvent.is_active.is_(True))
        return [row_to_dict(e) for e in session.scalars(q).all()]


def get_event(engine: Engine, event_id: str) -> dict | None:
    with get_session(engine) as session:
        return row_to_dict(session.get(GamificationEvent, event_id))


def create_event(
    engine: Engine,
    *,
    event_type: str,
    coins_reward: int = 0,
    category_id: str | None = None,
    is_active: bool = True,
    metadata: dict | None = None,
    event_position: int = 0,
    actor_id: str | None = None,
) -> dict:
    """Insert a gamification event and return it as a dict.

    Raises
    ------
    NotFoundError
        If *category_id* does not name a category.
    ConflictError
        If *event_type* is already taken.
    """
    with get_session(engine) as session:
        _require_category(session, category_id)
        event = GamificationEvent(
            event_type=event_type,
            coins_reward=coins_reward,
            event_type_category=category_id,
            is_active=is_active,
            metadata_=metadata or {},
            event_position=event_position,
        )
        session.add(event)
        _flush_event(session, event_type)

        after = row_to_dict(event)
        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="CREATE",
                target_table=EVENTS_TABLE,
                target_id=event.id,
                before=None,
                after=after,
            )
        return after


def update_event(
    engine: Engine,
    event_id: str,
    fields: dict[str, Any],
    *,
    actor_id: str | None = None,
) -> dict | None:
    """Apply a staff edit to an event.  Returns ``None`` when it is missing.

    Keys of *fields* are API names (see :data:`EVENT_FIELDS`); unknown keys
    are ignored.  ``None`` clears ``category_id`` and is ignored elsewhere.
    """
    with get_session(engine) as session:
        event = session.get(GamificationEvent, event_id)
        if event is None:
            return None

        changes = {
            key: value for key, value in fields.items()
            if key in EVENT_FIELDS and (value is not None or key in NULLABLE_EVENT_FIELDS)
        }
        if "category_id" in changes:
            _require_category(session, changes["category_id"])

        before = row_to_dict(event)
        for key, value in changes.items():
            setattr(event, EVENT_FIELDS[key], value)
        _flush_event(session, event.event_type)

        after = row_to_dict(event)
        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="UPDATE",
                target_table=EVENTS_TABLE,
                target_id=event.id,
                before=before,
                after=after,
            )
        return after


def set_event_active(
    engine: Engine, event_id: str, is_active: bool, *, actor_id: str | None = None,
) -> dict | None:
    """Enable or disable an event."""
    return update_event(engine, event_id, {"is_active": is_active}, actor_id=actor_id)


def delete_event(engine: Engine, event_id: str, *, actor_id: str | None = None) -> bool:
    """Delete an event and its translations.  Returns ``True`` if it existed."""
    with get_session(engine) as session:
        event = session.get(GamificationEvent, event_id)
        if event is None:
            return False

        translations = len(event.translations)
        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="DELETE",
                target_table=EVENTS_TABLE,
                target_id=event.id,
                before=row_to_dict(event),
                after=None,
                reason=f"cascade: {translations} translations",
            )
        session.delete(event)

    logger.info("Deleted event %s with %d translations", event_id, translations)
    return True


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories(engine: Engine) -> list[dict]:
    with get_session(engine) as session:
        rows = session.scalars(
            select(EventCategory).order_by(EventCategory.category_position, EventCategory.name)
        ).all()
        return [row_to_dict(r) for r in rows]


def create_category(
    engine: Engine,
    *,
    name: str,
    description: str | None = None,
    category_position: int = 0,
    actor_id: str | None = None,
) -> dict:
    with get_session(engine) as session:
        category = EventCategory(
            name=name, description=description, category_position=category_position,
        )
        session.add(category)
        session.flush()

        after = row_to_dict(category)
        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="CREATE",
                target_table=CATEGORIES_TABLE,
                target_id=category.id,
                before=None,
                after=after,
            )
        return after


def update_category(
    engine: Engine,
    category_id: str,
    fields: dict[str, Any],
    *,
    actor_id: str | None = None,
) -> dict | None:
    with get_session(engine) as session:
        category = session.get(EventCategory, category_id)
        if category is None:
            return None

        before = row_to_dict(category)
        for key, value in fields.items():
            # description may be cleared; name and position may not.
            if key in CATEGORY_FIELDS and (value is not None or key == "description"):
                setattr(category, key, value)
        session.flush()

        after = row_to_dict(category)
        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="UPDATE",
                target_table=CATEGORIES_TABLE,
                target_id=category.id,
                before=before,
                after=after,
            )
        return after


def delete_category(engine: Engine, category_id: str, *, actor_id: str | None = None) -> bool:
    """Delete a category, detaching its events first."""
    with get_session(engine) as session:
        category = session.get(EventCategory, category_id)
        if category is None:
            return False

        detached = session.execute(
            update(GamificationEvent)
            .where(GamificationEvent.event_type_category == category_id)
            .values(event_type_category=None)
        ).rowcount or 0
        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="DELETE",
                target_table=CATEGORIES_TABLE,
                target_id=category.id,
                before=row_to_dict(category),
                after=None,
                reason=f"detached {detached} events",
            )
        session.delete(category)

    logger.info("Deleted event category %s (%d events detached)", category_id, detached)
    return True
