"""
backoffice.api.routes.events — Gamification events & categories (JWT-protected)
=================================================================================
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from backoffice.api.deps import actor_id, get_current_admin, get_engine
from backoffice.services import event_service

router = APIRouter(prefix="/admin", tags=["events"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class EventCreate(BaseModel):
    event_type: str = Field(min_length=1, max_length=100)
    coins_reward: int = Field(default=0, ge=0)
    category_id: str | None = None
    is_active: bool = True
    metadata: dict[str, Any] | None = None
    event_position: int = 0


class EventUpdate(BaseModel):
    event_type: str | None = Field(default=None, min_length=1, max_length=100)
    coins_reward: int | None = Field(default=None, ge=0)
    category_id: str | None = None
    is_active: bool | None = None
    metadata: dict[str, Any] | None = None
    event_position: int | None = None


class EventActiveUpdate(BaseModel):
    is_active: bool


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    category_position: int = 0


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    category_position: int | None = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
@router.get("/events")
def list_events(
    active_only: bool = Query(False),
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return {"events": event_service.list_events(engine, active_only=active_only)}


@router.get("/events/{event_id}")
def get_event(
    event_id: str,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    event = event_service.get_event(engine, event_id)
    if event is None:
        raise HTTPException(404, "Event not found")
    return event


@router.post("/events", status_code=201)
def create_event(
    body: EventCreate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return event_service.create_event(engine, **body.model_dump(), actor_id=actor_id(admin))


@router.patch("/events/{event_id}")
def update_event(
    event_id: str,
    body: EventUpdate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    """Partial edit.  Only fields present in the body are applied;
    ``"category_id": null`` detaches the event from its category."""
    event = event_service.update_event(
        engine, event_id, body.model_dump(exclude_unset=True), actor_id=actor_id(admin),
    )
    if event is None:
        raise HTTPException(404, "Event not found")
    return event


@router.put("/events/{event_id}/active")
def set_event_active(
    event_id: str,
    body: EventActiveUpdate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    event = event_service.set_event_active(
        engine, event_id, body.is_active, actor_id=actor_id(admin),
    )
    if event is None:
        raise HTTPException(404, "Event not found")
    return event


@router.delete("/events/{event_id}")
def delete_event(
    event_id: str,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    """Delete an event together with all of its translations."""
    if not event_service.delete_event(engine, event_id, actor_id=actor_id(admin)):
        raise HTTPException(404, "Event not found")
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------
@router.get("/event-categories")
def list_categories(
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return {"categories": event_service.list_categories(engine)}


@router.post("/event-categories", status_code=201)
def create_category(
    body: CategoryCreate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return event_service.create_category(engine, **body.model_dump(), actor_id=actor_id(admin))


@router.patch("/event-categories/{category_id}")
def update_category(
    category_id: str,
    body: CategoryUpdate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    category = event_service.update_category(
        engine, category_id, body.model_dump(exclude_unset=True), actor_id=actor_id(admin),
    )
    if category is None:
        raise HTTPException(404, "Category not found")
    return category


@router.delete("/event-categories/{category_id}")
def delete_category(
    category_id: str,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    """Delete a category; its events stay, without a category."""
    if not event_service.delete_category(engine, category_id, actor_id=actor_id(admin)):
        raise HTTPException(404, "Category not found")
    return {"deleted": True}
