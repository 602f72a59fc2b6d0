"""Bid routes: submission, listings and accept/reject."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request, status

from ..auth import CurrentIdentity
from ..config import Settings, get_settings
from ..database import Database
from ..logging_config import get_logger
from ..models import BidEnvelope, BidListResponse, BidStatusUpdate, MessageResponse
from ..rate_limit import limiter
from ..services import BidQueryService, BidResolutionEngine, BidService

logger = get_logger("kuvaajat.routes.bids")
router = APIRouter(prefix="/api", tags=["bids"])


def get_bid_service(db: Database, settings: Annotated[Settings, Depends(get_settings)]) -> BidService:
    return BidService(db, require_open_job=settings.bids_require_open_job)


def get_resolution_engine(
    db: Database, settings: Annotated[Settings, Depends(get_settings)]
) -> BidResolutionEngine:
    return BidResolutionEngine(db, strict_transitions=settings.strict_bid_transitions)


def get_query_service(db: Database) -> BidQueryService:
    return BidQueryService(db)


@router.post("/bid", response_model=BidEnvelope, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def post_bid(
    request: Request,
    payload: Annotated[dict[str, Any], Body()],
    identity: CurrentIdentity,
    service: Annotated[BidService, Depends(get_bid_service)],
):
    """
    Submit a bid on a job.

    The caller must be a photographer; ``videographerId`` is always the caller.
    """
    logger.info(f"POST /api/bid | {identity.role}={identity.subject_id} | job={payload.get('jobId')}")
    created = await service.create_bid(identity, payload)
    return BidEnvelope(message="Bid submitted successfully", bid=created)


@router.get("/bids", response_model=BidListResponse)
@limiter.limit("60/minute")
async def list_bids_for_customer(
    request: Request,
    identity: CurrentIdentity,
    queries: Annotated[BidQueryService, Depends(get_query_service)],
):
    """Bids on the caller's jobs, with job and photographer summaries."""
    logger.info(f"GET /api/bids | customer={identity.subject_id}")
    bids = await queries.bids_for_customer(identity)
    return BidListResponse(bids=bids)


@router.get("/my-bids", response_model=BidListResponse)
@limiter.limit("60/minute")
async def list_my_bids(
    request: Request,
    identity: CurrentIdentity,
    queries: Annotated[BidQueryService, Depends(get_query_service)],
):
    """The caller's own bids, with a summary of each job."""
    logger.info(f"GET /api/my-bids | photographer={identity.subject_id}")
    bids = await queries.bids_for_photographer(identity)
    return BidListResponse(bids=bids)


@router.patch("/bids/{bid_id}", response_model=MessageResponse)
@limiter.limit("10/minute")
async def update_bid_status(
    request: Request,
    bid_id: str,
    update: BidStatusUpdate,
    identity: CurrentIdentity,
    engine: Annotated[BidResolutionEngine, Depends(get_resolution_engine)],
):
    """
    Accept or reject a bid.

    Accepting claims the job for this bid and rejects the job's other
    pending bids. Returns 409 if another bid already won the job.
    """
    logger.info(f"PATCH /api/bids/{bid_id} | customer={identity.subject_id} | status={update.status}")
    message = await engine.set_bid_status(identity, bid_id, update.status)
    return MessageResponse(message=message)
