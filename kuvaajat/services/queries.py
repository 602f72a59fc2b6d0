"""
Query/join layer.

The store has no foreign keys and a single secondary index on
``entryType``, so every lookup here is an index scan plus an in-memory
predicate, and every join is a dictionary merge. Each call is O(N) in the
number of records of the scanned kind; that is the cost of the single-table
layout.
"""

from datetime import datetime
from typing import Callable

from ..auth import CUSTOMER, PHOTOGRAPHER, Identity
from ..database import BID_KIND, JOB_KIND, RecordStore, profile_key
from ..logging_config import get_logger
from .jobs import job_view, utc_now

logger = get_logger("kuvaajat.queries")

CUSTOMER_JOB_FIELDS = (
    "id",
    "title",
    "description",
    "budgetMin",
    "budgetMax",
    "budgetUnknown",
    "services",
    "city",
    "status",
)

PHOTOGRAPHER_JOB_FIELDS = CUSTOMER_JOB_FIELDS + (
    "area",
    "date",
    "dateRange",
    "duration",
    "difficulty",
    "expiresAt",
)


# =============================================================================
# Scan Primitives
# =============================================================================


async def find_bid(store: RecordStore, bid_id: str) -> dict | None:
    """Find a bid by ``id`` or its legacy ``bidId``."""
    for bid in await store.query_by_kind(BID_KIND):
        if bid.get("id") == bid_id or bid.get("bidId") == bid_id:
            return bid
    return None


async def find_customer_job(store: RecordStore, customer_id: str, job_id: str) -> dict | None:
    """Find a job by id among the jobs owned by ``customer_id``."""
    for job in await store.query_by_kind(JOB_KIND, customerId=customer_id):
        if job.get("id") == job_id:
            return job
    return None


async def sibling_bids(store: RecordStore, job_id: str, exclude_id: str) -> list[dict]:
    """Bids on ``job_id`` other than ``exclude_id``."""
    return [b for b in await store.query_by_kind(BID_KIND, jobId=job_id) if b.get("id") != exclude_id]


# =============================================================================
# Projections
# =============================================================================


def project(record: dict, fields: tuple[str, ...]) -> dict:
    return {field: record.get(field) for field in fields}


def customer_job_projection(job: dict) -> dict:
    return project(job, CUSTOMER_JOB_FIELDS)


def photographer_job_projection(job: dict) -> dict:
    """Job projection for photographers, with legacy snake_case budget aliases."""
    projection = project(job, PHOTOGRAPHER_JOB_FIELDS)
    projection["budget_min"] = job.get("budgetMin")
    projection["budget_max"] = job.get("budgetMax")
    return projection


def photographer_projection(photographer_id: str, profile: dict | None) -> dict:
    profile = profile or {}
    return {
        "id": photographer_id,
        "name": profile.get("name") or profile.get("contactName"),
        "profilePicture": profile.get("profilePicture"),
    }


# =============================================================================
# Views
# =============================================================================


class BidQueryService:
    """Reconstructs the customer and photographer bid listings."""

    def __init__(self, store: RecordStore, now: Callable[[], datetime] = utc_now):
        self.store = store
        self._now = now

    async def _load_profile(self, photographer_id: str, cache: dict[str, dict | None]) -> dict | None:
        """Fetch a profile once per listing; failures read as "no profile"."""
        if photographer_id not in cache:
            try:
                cache[photographer_id] = await self.store.get(profile_key(photographer_id))
            except Exception as e:
                # Non-critical: the listing is still useful without the profile
                logger.warning(f"Profile lookup failed | photographer={photographer_id} | {e}")
                cache[photographer_id] = None
        return cache[photographer_id]

    async def bids_for_customer(self, identity: Identity) -> list[dict]:
        """Bids placed on the caller's jobs, joined with job and bidder profile.

        Order follows the underlying index scan and is not stable.
        """
        identity.require_role(CUSTOMER, "Only customers can view bids on their jobs")

        bids = await self.store.query_by_kind(BID_KIND)
        jobs = await self.store.query_by_kind(JOB_KIND, customerId=identity.subject_id)
        jobs_by_id = {job["id"]: job for job in jobs}

        now = self._now()
        profiles: dict[str, dict | None] = {}
        enriched = []
        for bid in bids:
            job = jobs_by_id.get(bid.get("jobId"))
            if job is None:
                continue
            photographer_id = bid.get("videographerId")
            profile = await self._load_profile(photographer_id, profiles) if photographer_id else None
            enriched.append(
                {
                    **bid,
                    "job": customer_job_projection(job_view(job, now)),
                    "photographer": photographer_projection(photographer_id, profile),
                }
            )
        return enriched

    async def bids_for_photographer(self, identity: Identity) -> list[dict]:
        """The caller's own bids, each joined with its job (``None`` if gone)."""
        identity.require_role(PHOTOGRAPHER, "Only photographers can view their bids")

        bids = await self.store.query_by_kind(BID_KIND, videographerId=identity.subject_id)
        jobs = await self.store.query_by_kind(JOB_KIND)
        jobs_by_id = {job["id"]: job for job in jobs}

        now = self._now()
        enriched = []
        for bid in bids:
            job = jobs_by_id.get(bid.get("jobId"))
            enriched.append(
                {
                    **bid,
                    "job": photographer_job_projection(job_view(job, now)) if job else None,
                }
            )
        return enriched
