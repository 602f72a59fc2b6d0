"""Photographer profile and portfolio routes."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from ..auth import CurrentIdentity
from ..database import Database
from ..models import PortfolioEnvelope, ProfileEnvelope
from ..rate_limit import limiter
from ..services import ProfileService

router = APIRouter(prefix="/api", tags=["profiles"])


def get_profile_service(db: Database) -> ProfileService:
    return ProfileService(db)


Profiles = Annotated[ProfileService, Depends(get_profile_service)]


@router.get("/profile/{photographer_id}", response_model=ProfileEnvelope)
@limiter.limit("60/minute")
async def get_profile(request: Request, photographer_id: str, identity: CurrentIdentity, service: Profiles):
    return ProfileEnvelope(profile=await service.get_profile(photographer_id))


@router.put("/profile", response_model=ProfileEnvelope)
@limiter.limit("20/minute")
async def save_profile(
    request: Request, payload: Annotated[dict[str, Any], Body()], identity: CurrentIdentity, service: Profiles
):
    """Save the caller's photographer profile."""
    saved = await service.save_profile(identity, payload)
    return ProfileEnvelope(message="Profile saved successfully", profile=saved)


@router.get("/portfolio/{photographer_id}", response_model=PortfolioEnvelope)
@limiter.limit("60/minute")
async def get_portfolio(request: Request, photographer_id: str, identity: CurrentIdentity, service: Profiles):
    return PortfolioEnvelope(portfolio=await service.get_portfolio(photographer_id))


@router.put("/portfolio", response_model=PortfolioEnvelope)
@limiter.limit("20/minute")
async def save_portfolio(
    request: Request, payload: Annotated[dict[str, Any], Body()], identity: CurrentIdentity, service: Profiles
):
    """Save the caller's portfolio."""
    saved = await service.save_portfolio(identity, payload)
    return PortfolioEnvelope(message="Portfolio saved successfully", portfolio=saved)
