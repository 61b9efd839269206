"""
backoffice.services.translation_service — Event Catalog & Translation Store
=============================================================================

Synchronous data access for gamification events and their translations,
plus :func:`run_translation_fanout`, the job wrapper the admin API calls.

Staff operations (create, edit, delete, bulk delete by language) are
audit-logged when an ``actor_id`` is supplied.  A staff edit always flips
the row's status to ``manual`` so the fan-out engine treats it as
hand-curated.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine, delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.config import BackofficeConfig
from backoffice.constants import TargetLanguage, TranslationStatus
from backoffice.database.models import EventTranslation, GamificationEvent
from backoffice.engine.fanout import (
    EventRecord,
    TranslationFanOut,
    TranslationProvider,
    TranslationRecord,
)
from backoffice.errors import (
    BackofficeError,
    DuplicateTranslationError,
    NotFoundError,
    PersistenceError,
    SourceReadError,
)
from backoffice.services.admin_service import log_admin_action, row_to_dict

logger = logging.getLogger(__name__)

TABLE = "gamification_event_translations"

# Fields a staff edit may change.
EDITABLE_FIELDS: frozenset[str] = frozenset({"title", "description", "message", "language_code"})


def _translation_to_dict(row: EventTranslation) -> dict:
    return {
        "id": row.id,
        "event_id": row.event_id,
        "language_code": row.language_code,
        "title": row.title,
        "description": row.description,
        "message": row.message,
        "status": row.status,
        "batch_id": row.batch_id,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Event catalog (read side; staff edits live in event_service)
# ---------------------------------------------------------------------------

def list_events(engine: Engine, *, active_only: bool = False) -> list[EventRecord]:
    """All gamification events ordered by ``event_position``."""
    with Session(engine) as session:
        q = select(GamificationEvent).order_by(
            GamificationEvent.event_position, GamificationEvent.event_type,
        )
        if active_only:
            q = q.where(GamificationEvent.is_active.is_(True))
        return [
            EventRecord(
                id=e.id,
                event_type=e.event_type,
                category_id=e.event_type_category,
                is_active=e.is_active,
            )
            for e in session.scalars(q).all()
        ]


# ---------------------------------------------------------------------------
# Translation reads
# ---------------------------------------------------------------------------

def list_translations(
    engine: Engine,
    *,
    language_code: str | None = None,
    event_id: str | None = None,
) -> list[dict]:
    """Translations as plain dicts, optionally filtered."""
    with Session(engine) as session:
        q = select(EventTranslation).order_by(
            EventTranslation.event_id, EventTranslation.language_code,
        )
        if language_code:
            q = q.where(EventTranslation.language_code == language_code)
        if event_id:
            q = q.where(EventTranslation.event_id == event_id)
        return [_translation_to_dict(r) for r in session.scalars(q).all()]


def count_translations_by_language(engine: Engine) -> dict[str, int]:
    """``{language_code: row_count}`` for every language present."""
    with Session(engine) as session:
        rows = session.execute(
            select(EventTranslation.language_code, func.count())
            .group_by(EventTranslation.language_code)
        ).all()
        return {code: count for code, count in rows}


# ---------------------------------------------------------------------------
# Translation writes
# ---------------------------------------------------------------------------

def _pair_exists(
    session: Session, event_id: str, language_code: str, *, exclude_id: str | None = None,
) -> bool:
    q = select(EventTranslation.id).where(
        EventTranslation.event_id == event_id,
        EventTranslation.language_code == language_code,
    )
    if exclude_id is not None:
        q = q.where(EventTranslation.id != exclude_id)
    return session.scalar(q) is not None


def create_translation(
    engine: Engine,
    *,
    event_id: str,
    language_code: str,
    title: str,
    description: str = "",
    message: str = "",
    actor_id: str | None = None,
) -> dict:
    """Manual staff entry.  Status is ``manual``.

    Raises
    ------
    NotFoundError
        If *event_id* does not name an event.
    DuplicateTranslationError
        If the (event, language) pair already has a row.
    """
    with Session(engine) as session:
        if session.get(GamificationEvent, event_id) is None:
            raise NotFoundError(f"Event {event_id} not found")
        if _pair_exists(session, event_id, language_code):
            raise DuplicateTranslationError(event_id, language_code)

        row = EventTranslation(
            event_id=event_id,
            language_code=language_code,
            title=title,
            description=description,
            message=message,
            status=TranslationStatus.MANUAL.value,
        )
        session.add(row)
        try:
            session.flush()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateTranslationError(event_id, language_code) from exc

        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="CREATE",
                target_table=TABLE,
                target_id=row.id,
                before=None,
                after=row_to_dict(row),
            )
        session.commit()
        return _translation_to_dict(row)


def update_translation(
    engine: Engine,
    translation_id: str,
    fields: dict[str, Any],
    *,
    actor_id: str | None = None,
) -> dict | None:
    """Apply a staff edit and flip status to ``manual``.

    Unknown keys in *fields* are ignored.  Returns ``None`` when the row
    does not exist.

    Raises
    ------
    DuplicateTranslationError
        If ``language_code`` changes to a language the event already has.
    """
    with Session(engine) as session:
        row = session.get(EventTranslation, translation_id)
        if row is None:
            return None

        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
        new_language = changes.get("language_code")
        if new_language and new_language != row.language_code:
            if _pair_exists(session, row.event_id, new_language, exclude_id=row.id):
                raise DuplicateTranslationError(row.event_id, new_language)

        before = row_to_dict(row)
        for key, value in changes.items():
            setattr(row, key, value)
        row.status = TranslationStatus.MANUAL.value
        row.updated_at = datetime.now(UTC)
        try:
            session.flush()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateTranslationError(
                before["event_id"], new_language or before["language_code"],
            ) from exc

        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="UPDATE",
                target_table=TABLE,
                target_id=row.id,
                before=before,
                after=row_to_dict(row),
            )
        session.commit()
        return _translation_to_dict(row)


def delete_translation(
    engine: Engine, translation_id: str, *, actor_id: str | None = None,
) -> bool:
    """Delete one translation.  Returns ``True`` if it existed."""
    with Session(engine) as session:
        row = session.get(EventTranslation, translation_id)
        if row is None:
            return False
        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="DELETE",
                target_table=TABLE,
                target_id=row.id,
                before=row_to_dict(row),
                after=None,
            )
        session.delete(row)
        session.commit()
        return True


def delete_translations_by_language(
    engine: Engine, language_code: str, *, actor_id: str | None = None,
) -> int:
    """Unconditionally delete every translation in *language_code*.

    Confirmation is the caller's job; this function just deletes and
    returns the number of rows removed.
    """
    with Session(engine) as session:
        result = session.execute(
            delete(EventTranslation).where(EventTranslation.language_code == language_code)
        )
        deleted = result.rowcount or 0
        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="BULK_DELETE",
                target_table=TABLE,
                target_id=f"language_code={language_code}",
                before={"language_code": language_code, "count": deleted},
                after=None,
            )
        session.commit()

    logger.info("Deleted %d translations for language '%s'", deleted, language_code)
    return deleted


def insert_translations(engine: Engine, rows: Sequence[TranslationRecord]) -> int:
    """Insert *rows* in a single transaction and return how many were written.

    Raises
    ------
    PersistenceError
        If the transaction fails (nothing from this call is kept).
    """
    if not rows:
        return 0
    try:
        with Session(engine) as session:
            session.add_all([
                EventTranslation(
                    event_id=r.event_id,
                    language_code=r.language_code,
                    title=r.title,
                    description=r.description,
                    message=r.message,
                    status=r.status,
                    batch_id=r.batch_id,
                )
                for r in rows
            ])
            session.commit()
    except SQLAlchemyError as exc:
        raise PersistenceError(
            f"Failed to insert translations batch ({len(rows)} rows): {exc}"
        ) from exc
    return len(rows)


# ---------------------------------------------------------------------------
# Store adapter for the fan-out engine
# ---------------------------------------------------------------------------

class SqlTranslationStore:
    """:class:`~backoffice.engine.fanout.TranslationStore` over SQLAlchemy."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list_events(self) -> list[EventRecord]:
        try:
            return list_events(self._engine)
        except SQLAlchemyError as exc:
            raise SourceReadError(f"Failed to read gamification events: {exc}") from exc

    def list_translations(self) -> list[TranslationRecord]:
        try:
            with Session(self._engine) as session:
                rows = session.scalars(
                    select(EventTranslation).order_by(
                        EventTranslation.created_at, EventTranslation.language_code,
                    )
                ).all()
                return [
                    TranslationRecord(
                        id=r.id,
                        event_id=r.event_id,
                        language_code=r.language_code,
                        title=r.title,
                        description=r.description,
                        message=r.message,
                        status=r.status,
                        batch_id=r.batch_id,
                    )
                    for r in rows
                ]
        except SQLAlchemyError as exc:
            raise SourceReadError(f"Failed to read existing translations: {exc}") from exc

    def insert_translations(self, rows: Sequence[TranslationRecord]) -> int:
        return insert_translations(self._engine, rows)


# ---------------------------------------------------------------------------
# Job wrapper
# ---------------------------------------------------------------------------

async def run_translation_fanout(
    engine: Engine,
    provider: TranslationProvider,
    cfg: BackofficeConfig,
    *,
    target_languages: Sequence[TargetLanguage] | None = None,
) -> dict:
    """Run the fan-out over every event and return the structured result.

    *target_languages* narrows the configured list for one run (for
    example to regenerate a single language after a bulk delete).
    """
    logger.info("Starting translation fan-out")
    fanout = TranslationFanOut(
        SqlTranslationStore(engine),
        provider,
        target_languages if target_languages is not None else cfg.target_languages,
        batch_size=cfg.translation_batch_size,
        request_delay=cfg.translation_request_delay,
    )
    result = await fanout.run()
    return result.to_dict()


def failure_result(exc: BackofficeError) -> dict:
    """Structured failure for errors raised before a job could start."""
    return {
        "success": False,
        "message": str(exc),
        "error_kind": exc.kind.value,
        "timestamp": datetime.now(UTC).isoformat(),
    }
