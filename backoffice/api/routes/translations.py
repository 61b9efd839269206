"""
backoffice.api.routes.translations — Translations & fan-out (JWT-protected)
===========================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backoffice.api.deps import (
    actor_id,
    get_config,
    get_current_admin,
    get_engine,
    get_translation_provider,
)
from backoffice.config import BackofficeConfig
from backoffice.engine.fanout import TranslationProvider
from backoffice.services import translation_service

router = APIRouter(prefix="/admin", tags=["translations"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class TranslationCreate(BaseModel):
    event_id: str
    language_code: str = Field(min_length=1, max_length=16)
    title: str
    description: str = ""
    message: str = ""


class TranslationUpdate(BaseModel):
    language_code: str | None = Field(default=None, min_length=1, max_length=16)
    title: str | None = None
    description: str | None = None
    message: str | None = None


class FanOutRequest(BaseModel):
    # Restrict one run to these codes; None means every configured language.
    language_codes: list[str] | None = None


# ---------------------------------------------------------------------------
# Translations CRUD
# ---------------------------------------------------------------------------
@router.get("/translations")
def list_translations(
    language_code: str | None = Query(None),
    event_id: str | None = Query(None),
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    rows = translation_service.list_translations(
        engine, language_code=language_code, event_id=event_id,
    )
    return {"translations": rows, "total": len(rows)}


@router.post("/translations", status_code=201)
def create_translation(
    body: TranslationCreate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return translation_service.create_translation(
        engine,
        event_id=body.event_id,
        language_code=body.language_code,
        title=body.title,
        description=body.description,
        message=body.message,
        actor_id=actor_id(admin),
    )


@router.patch("/translations/{translation_id}")
def update_translation(
    translation_id: str,
    body: TranslationUpdate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    row = translation_service.update_translation(
        engine,
        translation_id,
        body.model_dump(exclude_none=True),
        actor_id=actor_id(admin),
    )
    if row is None:
        raise HTTPException(404, "Translation not found")
    return row


@router.delete("/translations/{translation_id}")
def delete_translation(
    translation_id: str,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    if not translation_service.delete_translation(
        engine, translation_id, actor_id=actor_id(admin),
    ):
        raise HTTPException(404, "Translation not found")
    return {"deleted": True}


@router.delete("/translations")
def delete_translations_by_language(
    language_code: str = Query(..., min_length=1),
    confirm: bool = Query(False),
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    """Delete every translation in one language.  Requires ``confirm=true``."""
    if not confirm:
        pending = translation_service.count_translations_by_language(engine).get(language_code, 0)
        raise HTTPException(400, detail={
            "message": "Bulk delete requires confirm=true",
            "language_code": language_code,
            "would_delete": pending,
        })
    deleted = translation_service.delete_translations_by_language(
        engine, language_code, actor_id=actor_id(admin),
    )
    return {"language_code": language_code, "deleted": deleted}


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------
@router.post("/translations/fan-out")
async def run_fanout(
    body: FanOutRequest | None = None,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
    cfg: BackofficeConfig = Depends(get_config),
    provider: TranslationProvider = Depends(get_translation_provider),
):
    """Fill every missing (event, language) translation."""
    languages = None
    if body is not None and body.language_codes is not None:
        by_code = {lang.code: lang for lang in cfg.target_languages}
        unknown = sorted(set(body.language_codes) - by_code.keys())
        if unknown:
            raise HTTPException(400, f"Unknown target language codes: {', '.join(unknown)}")
        languages = [by_code[code] for code in dict.fromkeys(body.language_codes)]

    result = await translation_service.run_translation_fanout(
        engine, provider, cfg, target_languages=languages,
    )
    if not result["success"]:
        return JSONResponse(status_code=500, content=result)
    return result
