"""
Photographer profiles and portfolios.

Both live at deterministic keys (``profile_<id>``, ``portfolio_<id>``) so the
bid listings can join them with a point lookup instead of a scan.
"""

from datetime import datetime
from typing import Callable

from ..auth import PHOTOGRAPHER, Identity
from ..database import KIND_FIELD, PORTFOLIO_KIND, PROFILE_KIND, RecordStore, portfolio_key, profile_key
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import PortfolioUpdate, ProfileUpdate, validate_request
from .jobs import to_iso, utc_now

logger = get_logger("kuvaajat.profiles")


class ProfileService:
    """Reads and saves photographer reference data."""

    def __init__(self, store: RecordStore, now: Callable[[], datetime] = utc_now):
        self.store = store
        self._now = now

    async def _get(self, key: str, kind: str, label: str) -> dict:
        record = await self.store.get(key)
        if not record or record.get(KIND_FIELD) != kind:
            raise NotFoundError(f"{label} not found")
        return record

    async def _save(self, identity: Identity, key: str, kind: str, fields: dict) -> dict:
        existing = await self.store.get(key)
        now = to_iso(self._now())
        record = {
            "id": key,
            KIND_FIELD: kind,
            "photographerId": identity.subject_id,
            **fields,
            "createdAt": existing.get("createdAt", now) if existing else now,
            "updatedAt": now,
        }
        saved = await self.store.put(record)
        logger.info(f"{kind.capitalize()} saved | photographer={identity.subject_id}")
        return saved

    async def get_profile(self, photographer_id: str) -> dict:
        return await self._get(profile_key(photographer_id), PROFILE_KIND, "Profile")

    async def get_portfolio(self, photographer_id: str) -> dict:
        return await self._get(portfolio_key(photographer_id), PORTFOLIO_KIND, "Portfolio")

    async def save_profile(self, identity: Identity, profile: ProfileUpdate | dict) -> dict:
        """Replace the caller's profile."""
        identity.require_role(PHOTOGRAPHER, "Only photographers have profiles")
        if not isinstance(profile, ProfileUpdate):
            profile = validate_request(ProfileUpdate, profile)
        fields = profile.model_dump(by_alias=True)
        return await self._save(identity, profile_key(identity.subject_id), PROFILE_KIND, fields)

    async def save_portfolio(self, identity: Identity, portfolio: PortfolioUpdate | dict) -> dict:
        """Replace the caller's portfolio. Every item must point at media."""
        identity.require_role(PHOTOGRAPHER, "Only photographers have portfolios")
        if not isinstance(portfolio, PortfolioUpdate):
            portfolio = validate_request(PortfolioUpdate, portfolio)
        for item in portfolio.items:
            if not item.url or not item.url.strip():
                raise ValidationError("Portfolio item url is required")
        fields = {
            "description": (portfolio.description or "").strip(),
            "items": [item.model_dump() for item in portfolio.items],
        }
        return await self._save(identity, portfolio_key(identity.subject_id), PORTFOLIO_KIND, fields)
