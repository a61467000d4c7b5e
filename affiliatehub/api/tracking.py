"""
Referral link tracking.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from affiliatehub.config import settings
from affiliatehub.db import get_db
from affiliatehub.models import Click
from affiliatehub.services.partners import get_partner_by_referral_code, record_click
from affiliatehub.utils.request import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/track", tags=["Tracking"])


@router.get("/{referral_code}", include_in_schema=False)
async def track_referral(
    referral_code: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Record a referral click and send the visitor on to signup."""
    partner = await get_partner_by_referral_code(db, referral_code)
    if not partner:
        raise HTTPException(status_code=404, detail="Invalid referral code")

    db.add(
        Click(
            partner_id=partner.id,
            ip_address=get_client_ip(request),
            user_agent=(request.headers.get("User-Agent") or "")[:500] or None,
            referrer=(request.headers.get("Referer") or "")[:1000] or None,
        )
    )
    await record_click(db, partner.id)

    logger.debug(f"Click tracked for partner {partner.id}")

    return RedirectResponse(url=settings.referral_redirect_url, status_code=302)
