"""
backoffice.services.settings_service — App Settings CRUD
==========================================================

Typed read/write access to the ``app_settings`` table.  Values are stored
as JSON text; readers get the decoded value back.

The only setting the jobs depend on today is ``free_episodes_count``
(``{"count": N}``), read once per import run.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from backoffice.constants import DEFAULT_FREE_EPISODES_COUNT, FREE_EPISODES_COUNT_KEY
from backoffice.database.models import AppSetting
from backoffice.engine.eligibility import parse_free_count
from backoffice.services.admin_service import log_admin_action

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_setting(engine: Engine, key: str) -> dict | None:
    """Fetch a single setting by key, returned as a plain dict."""
    with Session(engine) as session:
        row = session.get(AppSetting, key)
        if row is None:
            return None
        return {
            "key": row.key,
            "value_json": row.value_json,
            "category": row.category,
            "description": row.description,
        }


def get_setting_value(session: Session, key: str, default=None):
    """Read a single setting's parsed value from an existing session.

    Parameters
    ----------
    session : Session
        An open SQLAlchemy session.
    key : str
        The setting key to look up.
    default
        Returned when the key does not exist.

    Returns
    -------
    The JSON-decoded value, the raw text if it is not valid JSON, or
    *default*.
    """
    row = session.get(AppSetting, key)
    if row is None:
        return default
    try:
        return json.loads(row.value_json)
    except (json.JSONDecodeError, TypeError):
        return row.value_json


def get_all_settings(engine: Engine) -> list[dict]:
    """Every setting row, ordered by category then key."""
    with Session(engine) as session:
        rows = session.scalars(
            select(AppSetting).order_by(AppSetting.category, AppSetting.key)
        ).all()
        return [
            {
                "key": r.key,
                "value_json": r.value_json,
                "category": r.category,
                "description": r.description,
            }
            for r in rows
        ]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def upsert_setting(
    engine: Engine,
    *,
    key: str,
    value: Any,
    category: str = "general",
    description: str | None = None,
    actor_id: str | None = None,
) -> None:
    """Insert or update a single setting.

    When *actor_id* is provided the change is recorded in ``admin_log``
    with before/after values.
    """
    value_json = json.dumps(value)
    with Session(engine) as session:
        existing = session.get(AppSetting, key)
        before: dict | None = None
        if existing:
            before = {"key": key, "value": get_setting_value(session, key)}
            existing.value_json = value_json
            if category:
                existing.category = category
            if description is not None:
                existing.description = description
        else:
            session.add(AppSetting(
                key=key,
                value_json=value_json,
                category=category,
                description=description,
            ))

        if actor_id is not None:
            log_admin_action(
                session,
                actor_id=actor_id,
                action_type="UPDATE" if before else "CREATE",
                target_table="app_settings",
                target_id=key,
                before=before,
                after={"key": key, "value": value},
            )
        session.commit()

    logger.info("Setting '%s' updated", key)


# ---------------------------------------------------------------------------
# Free-episode threshold
# ---------------------------------------------------------------------------

def get_free_episodes_count(engine: Engine) -> int:
    """Current free-episode threshold; 3 when absent or unparsable."""
    with Session(engine) as session:
        raw = get_setting_value(session, FREE_EPISODES_COUNT_KEY)
    count = parse_free_count(raw)
    if raw is None:
        logger.info(
            "No '%s' setting found, using default %d",
            FREE_EPISODES_COUNT_KEY, DEFAULT_FREE_EPISODES_COUNT,
        )
    return count


def set_free_episodes_count(engine: Engine, count: int, *, actor_id: str | None = None) -> int:
    """Store a new threshold.  Raises ``ValueError`` for negative counts."""
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValueError(f"Free episode count must be a non-negative integer (got {count!r})")
    upsert_setting(
        engine,
        key=FREE_EPISODES_COUNT_KEY,
        value={"count": count},
        category="content",
        actor_id=actor_id,
    )
    return count
