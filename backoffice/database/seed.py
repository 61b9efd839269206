"""
backoffice.database.seed — Default Settings Seeder
====================================================

Baseline ``app_settings`` rows seeded on first startup so the import job
has a threshold to read.

Idempotent: only inserts keys that don't already exist.  Values edited
from the admin console are never overwritten.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from backoffice.constants import DEFAULT_FREE_EPISODES_COUNT, FREE_EPISODES_COUNT_KEY
from backoffice.database.models import AppSetting

logger = logging.getLogger(__name__)


DEFAULT_SETTINGS: dict[str, tuple[object, str, str]] = {
    FREE_EPISODES_COUNT_KEY: (
        {"count": DEFAULT_FREE_EPISODES_COUNT},
        "content",
        "Episodes at or below this position are free to view",
    ),
}
"""Each entry maps ``key`` → ``(default_value, category, description)``."""


def seed_default_settings(engine: Engine) -> None:
    """Insert default settings that don't yet exist."""
    session = Session(engine)
    inserted = 0
    try:
        for key, (value, category, desc) in DEFAULT_SETTINGS.items():
            if session.get(AppSetting, key) is None:
                session.add(AppSetting(
                    key=key,
                    value_json=json.dumps(value),
                    category=category,
                    description=desc,
                ))
                inserted += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if inserted:
        logger.info("Seeded %d default settings.", inserted)
