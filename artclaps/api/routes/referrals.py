"""
artclaps.api.routes.referrals — Referral code wallet
=====================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from artclaps.api.deps import get_admin_policy, get_config, get_engine, get_read_session
from artclaps.api.serializers import referral_code_dict
from artclaps.config import ArtClapsConfig
from artclaps.engine.authorization import AdminPolicy
from artclaps.schemas import CamelModel
from artclaps.services import referral_service

router = APIRouter(prefix="/referrals", tags=["referrals"])


class GenerateBody(CamelModel):
    user_fid: int


@router.get("")
def list_referral_codes(
    fid: int = Query(...),
    session: Session = Depends(get_read_session),
    policy: AdminPolicy = Depends(get_admin_policy),
):
    listing = referral_service.list_codes(session, policy, fid)
    return {
        "success": True,
        "codes": [referral_code_dict(c, c.used_by) for c in listing.codes],
        "user": {
            "artistStatus": listing.user.artist_status,
            "totalCodes": listing.total_codes,
            "usedCodes": listing.used_codes,
        },
    }


@router.post("/generate")
def generate_referral_code(
    body: GenerateBody,
    engine: Engine = Depends(get_engine),
    cfg: ArtClapsConfig = Depends(get_config),
    policy: AdminPolicy = Depends(get_admin_policy),
):
    row = referral_service.generate_code(engine, cfg, policy, body.user_fid)
    return {
        "success": True,
        "message": "Referral code generated successfully!",
        "code": referral_code_dict(row),
    }
