"""
backoffice.api.routes.settings — App settings & audit log
===========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from backoffice.api.deps import actor_id, get_current_admin, get_engine
from backoffice.services import admin_service, settings_service

router = APIRouter(prefix="/admin", tags=["settings"])


class FreeEpisodesUpdate(BaseModel):
    count: int = Field(ge=0, le=1000)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
@router.get("/settings")
def get_all_settings(
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return {"settings": settings_service.get_all_settings(engine)}


@router.get("/settings/free-episodes")
def get_free_episodes(
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return {"count": settings_service.get_free_episodes_count(engine)}


@router.put("/settings/free-episodes")
def update_free_episodes(
    body: FreeEpisodesUpdate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    """Change the threshold.  Takes effect on the next import run."""
    try:
        count = settings_service.set_free_episodes_count(
            engine, body.count, actor_id=actor_id(admin),
        )
    except ValueError as exc:
        raise HTTPException(400, str(exc))
    return {"count": count}


# ---------------------------------------------------------------------------
# Audit Log
# ---------------------------------------------------------------------------
@router.get("/audit")
def get_audit_log(
    target_table: str | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    entries = admin_service.get_audit_log(engine, target_table=target_table, limit=limit)
    return {"entries": entries, "total": len(entries)}
