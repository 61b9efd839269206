"""
backoffice.services.admin_service — Audit Log Helpers
======================================================

Staff-triggered mutations (event and category edits, translation edits and
deletes, bulk deletes, settings changes, locale-campaign removal) record a
row in ``admin_log`` inside the same transaction as the change:

  1. Read "before" snapshot
  2. Apply change
  3. Write admin_log with before/after JSON
  4. Commit

Batch jobs (fan-out, import) do not write audit rows; their structured
result is the record.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.database.models import AdminLog

logger = logging.getLogger(__name__)


def row_to_dict(obj: Any) -> dict | None:
    """Convert a SQLAlchemy model instance to a JSON-serializable dict."""
    if obj is None:
        return None
    result = {}
    for col in obj.__table__.columns:
        val = getattr(obj, col.key if col.key != "metadata" else "metadata_", None)
        if isinstance(val, datetime):
            val = val.isoformat()
        result[col.name] = val
    return result


def log_admin_action(
    session: Session,
    *,
    actor_id: str,
    action_type: str,
    target_table: str,
    target_id: str | None,
    before: dict | None,
    after: dict | None,
    reason: str | None = None,
) -> None:
    """Insert a row into admin_log within the current transaction."""
    session.add(AdminLog(
        actor_id=str(actor_id),
        action_type=action_type,
        target_table=target_table,
        target_id=target_id,
        before_snapshot=before,
        after_snapshot=after,
        reason=reason,
    ))


def get_audit_log(engine, *, target_table: str | None = None, limit: int = 50) -> list[dict]:
    """Most recent audit entries, newest first."""
    with Session(engine) as session:
        q = select(AdminLog).order_by(AdminLog.timestamp.desc(), AdminLog.id.desc())
        if target_table:
            q = q.where(AdminLog.target_table == target_table)
        rows = session.scalars(q.limit(limit)).all()
        return [
            {
                "id": r.id,
                "actor_id": r.actor_id,
                "action_type": r.action_type,
                "target_table": r.target_table,
                "target_id": r.target_id,
                "before_snapshot": r.before_snapshot,
                "after_snapshot": r.after_snapshot,
                "reason": r.reason,
                "timestamp": r.timestamp.isoformat() if r.timestamp else None,
            }
            for r in rows
        ]
