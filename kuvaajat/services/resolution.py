"""
Bid resolution engine.

Accepting or rejecting a bid is the one place where several records must
stay consistent: at most one bid per job may be ``accepted``, and the
remaining pending bids of that job are rejected once a winner exists.

The store offers no multi-record transactions. The linearization point is a
compare-and-set on the job's ``status`` (``open -> accepted``): only the
request that wins it may mark its bid accepted and cascade rejections.
Everything after the CAS is ordinary last-writer-wins writes and is not
rolled back on failure, so the target bid's decision always sticks.
"""

from datetime import datetime
from typing import Callable

from ..auth import CUSTOMER, Identity
from ..database import RecordStore
from ..errors import AuthorizationError, ConflictError, NotFoundError, StorageError, ValidationError
from ..logging_config import get_logger, log_bid_decision
from ..models import RESOLUTION_STATUSES
from .jobs import to_iso, utc_now
from .queries import find_bid, find_customer_job, sibling_bids

logger = get_logger("kuvaajat.resolution")

# Same message whether the bid or its job is missing, so a customer cannot
# probe for jobs they do not own.
BID_NOT_FOUND = "Bid not found"


class BidResolutionEngine:
    """Applies accept/reject decisions to bids."""

    def __init__(
        self,
        store: RecordStore,
        strict_transitions: bool = False,
        now: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.strict_transitions = strict_transitions
        self._now = now

    async def _locate(self, identity: Identity, bid_id: str) -> tuple[dict, dict]:
        """Find the bid and the caller-owned job it belongs to."""
        bid = await find_bid(self.store, bid_id)
        if not bid:
            raise NotFoundError(BID_NOT_FOUND)

        job = await find_customer_job(self.store, identity.subject_id, bid.get("jobId"))
        if not job:
            raise NotFoundError(BID_NOT_FOUND)

        # The scan above is already filtered by owner; check again before writing
        if job.get("customerId") != identity.subject_id:
            raise AuthorizationError("Only the job owner can resolve its bids")
        return bid, job

    async def _claim_job(self, job: dict, bid: dict, now: str) -> None:
        """Move the job ``open -> accepted`` for this bid, exactly once."""
        _, error = await self.store.compare_and_set(
            job["id"],
            "status",
            "open",
            {"status": "accepted", "acceptedBidId": bid["id"], "acceptedAt": now},
        )
        if error is None:
            return
        if error == "not_found":
            raise NotFoundError(BID_NOT_FOUND)

        current = await self.store.get(job["id"])
        if current is None:
            raise NotFoundError(BID_NOT_FOUND)
        if current.get("status") == "accepted" and current.get("acceptedBidId") == bid["id"]:
            # Re-accepting the winning bid is a no-op on the job
            return
        raise ConflictError("Another bid was already accepted for this job")

    async def _cascade_reject(self, job_id: str, accepted_id: str, now: str) -> int:
        """Reject the job's other pending bids. Returns how many were rejected.

        A store failure stops the cascade; earlier writes stay committed.
        """
        rejected = 0
        for sibling in await sibling_bids(self.store, job_id, accepted_id):
            if sibling.get("status") != "pending":
                continue
            try:
                _, error = await self.store.compare_and_set(
                    sibling["id"],
                    "status",
                    "pending",
                    {"status": "rejected", "resolvedAt": now},
                )
            except StorageError:
                logger.error(
                    f"Cascade aborted | job={job_id} | accepted={accepted_id} | "
                    f"failed_on={sibling['id']} | rejected_so_far={rejected}"
                )
                raise
            if error is None:
                rejected += 1
            else:
                logger.debug(f"Sibling {sibling['id']} changed before cascade ({error}); skipped")
        return rejected

    async def set_bid_status(self, identity: Identity, bid_id: str, status: str | None) -> str:
        """Accept or reject a bid on one of the caller's jobs.

        Returns:
            Acknowledgement message.

        Raises:
            AuthorizationError: caller is not a customer, or not the job owner
            ValidationError: status is not ``accepted`` or ``rejected``
            NotFoundError: bid missing, or its job is not owned by the caller
            ConflictError: another bid already won the job (or, in strict
                mode, the bid is no longer pending)
            StorageError: the store failed mid-way
        """
        identity.require_role(CUSTOMER, "Only customers can accept or reject bids")
        if status not in RESOLUTION_STATUSES:
            raise ValidationError("Status must be 'accepted' or 'rejected'")

        bid, job = await self._locate(identity, bid_id)
        if self.strict_transitions and bid.get("status") != "pending":
            raise ConflictError(f"Bid is already {bid.get('status')}")

        now = to_iso(self._now())
        if status == "accepted":
            await self._claim_job(job, bid, now)

        updated = await self.store.update(bid["id"], {"status": status, "resolvedAt": now})
        if updated is None:
            raise NotFoundError(BID_NOT_FOUND)

        cascaded = 0
        if status == "accepted":
            cascaded = await self._cascade_reject(job["id"], bid["id"], now)

        log_bid_decision(bid["id"], job["id"], identity.subject_id, status, cascaded)
        return f"Bid {status} successfully"
