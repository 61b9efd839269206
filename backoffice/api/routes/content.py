"""
backoffice.api.routes.content — Galaxy import & locale-campaigns (JWT-protected)
==================================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backoffice.api.deps import actor_id, get_content_feed, get_current_admin, get_engine
from backoffice.services import campaign_service, import_service

router = APIRouter(prefix="/admin", tags=["content"])


class CampaignLocaleCreate(BaseModel):
    campaign_id: int
    country_code: str | None = Field(default=None, max_length=8)
    language_code: str | None = Field(default=None, max_length=16)


# ---------------------------------------------------------------------------
# Galaxy import
# ---------------------------------------------------------------------------
@router.post("/import/galaxy")
async def run_galaxy_import(
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
    feed: import_service.ContentFeed = Depends(get_content_feed),
):
    """Import series and episodes for every locale-campaign.

    400 when there is nothing to import, 500 when the run failed outright.
    Individual campaign failures still return 200 and are listed in
    ``failed_campaigns``.
    """
    result = await import_service.run_galaxy_import(engine, feed)
    if not result["success"]:
        status_code = 500 if "error_kind" in result else 400
        return JSONResponse(status_code=status_code, content=result)
    return result


# ---------------------------------------------------------------------------
# Locale-campaigns
# ---------------------------------------------------------------------------
@router.get("/campaign-locales")
def list_campaign_locales(
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return {"campaign_locales": campaign_service.list_campaign_locales(engine)}


@router.post("/campaign-locales", status_code=201)
def create_campaign_locale(
    body: CampaignLocaleCreate,
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    return campaign_service.create_campaign_locale(
        engine,
        campaign_id=body.campaign_id,
        country_code=body.country_code,
        language_code=body.language_code,
    )


@router.delete("/campaign-locales/{campaign_locale_id}")
def delete_campaign_locale(
    campaign_locale_id: str,
    confirm: bool = Query(False),
    admin: dict = Depends(get_current_admin),
    engine=Depends(get_engine),
):
    """Remove a locale-campaign and all of its content.  Requires ``confirm=true``."""
    if not confirm:
        raise HTTPException(400, "Cascade delete requires confirm=true")
    return campaign_service.delete_campaign_locale(
        engine, campaign_locale_id, actor_id=actor_id(admin),
    )
