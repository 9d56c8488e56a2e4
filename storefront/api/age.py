"""Age gate endpoints"""

import secrets
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import AGE_SESSION_KEY, client_ip, is_age_verified
from storefront.config import settings
from storefront.database import get_db
from storefront.models.age_verification import AgeVerification

router = APIRouter()
logger = structlog.get_logger()


class AgeConfirmation(BaseModel):
    confirmed: bool = False


def session_id(request: Request) -> str:
    """Stable id for the visitor's cookie session"""
    if "session_id" not in request.session:
        request.session["session_id"] = secrets.token_hex(20)
    return request.session["session_id"]


@router.get("")
async def age_gate(request: Request):
    """Whether this session has passed the age gate"""
    return {
        "verified": is_age_verified(request),
        "age_requirement": settings.age_requirement,
        "shop_name": settings.store_name,
    }


@router.post("")
async def verify_age(
    confirmation: AgeConfirmation,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Record the visitor's confirmation of the minimum age"""
    if not confirmation.confirmed:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "The confirmed field must be accepted.",
                "errors": {"confirmed": ["The confirmed field must be accepted."]},
            },
        )

    request.session[AGE_SESSION_KEY] = True
    db.add(AgeVerification(
        session_id=session_id(request),
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
        verified=True,
        verified_at=datetime.utcnow(),
    ))
    await db.commit()

    logger.info("Age verified", ip_address=client_ip(request))
    return {"verified": True}
