"""
Bid submission service.

Photographers bid on jobs. By default the referenced job is not read at
submission time, so bids on deleted or expired jobs are accepted as
orphans; ``require_open_job`` turns on the existence and openness check.
"""

import math
import uuid
from datetime import datetime
from typing import Callable

from ..auth import PHOTOGRAPHER, Identity
from ..database import BID_KIND, JOB_KIND, KIND_FIELD, RecordStore
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models import BidCreate, validate_request
from .jobs import is_expired, to_iso, utc_now

logger = get_logger("kuvaajat.bids")


class BidService:
    """Validates and persists bids."""

    def __init__(
        self,
        store: RecordStore,
        require_open_job: bool = False,
        now: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.require_open_job = require_open_job
        self._now = now

    async def _check_job_open(self, job_id: str) -> None:
        job = await self.store.get(job_id)
        if not job or job.get(KIND_FIELD) != JOB_KIND:
            raise NotFoundError("Job not found")
        if job.get("status") != "open" or is_expired(job, self._now()):
            raise ValidationError("Job is not open for bids")

    async def create_bid(self, identity: Identity, bid: BidCreate | dict) -> dict:
        """Persist a pending bid owned by the calling photographer."""
        identity.require_role(PHOTOGRAPHER, "Only photographers can submit bids")
        if not isinstance(bid, BidCreate):
            bid = validate_request(BidCreate, bid)

        if not isinstance(bid.job_id, str) or not bid.job_id.strip():
            raise ValidationError("Job ID is required")
        job_id = bid.job_id.strip()
        if bid.price is None or not math.isfinite(bid.price) or bid.price <= 0:
            raise ValidationError("Price must be a positive number")
        if not bid.proposal or not bid.proposal.strip():
            raise ValidationError("Proposal is required")

        if self.require_open_job:
            await self._check_job_open(job_id)

        bid_id = str(uuid.uuid4())
        record = {
            "id": bid_id,
            "bidId": bid_id,
            KIND_FIELD: BID_KIND,
            "jobId": job_id,
            "videographerId": identity.subject_id,
            "price": bid.price,
            "proposal": bid.proposal.strip(),
            "status": "pending",
            "createdAt": to_iso(self._now()),
            "resolvedAt": None,
        }
        created = await self.store.put(record)
        logger.info(f"Bid created | id={bid_id} | job={job_id} | photographer={identity.subject_id}")
        return created
