"""Job posting routes."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, Request, status

from ..auth import CurrentIdentity
from ..config import Settings, get_settings
from ..database import Database
from ..logging_config import get_logger
from ..models import JobEnvelope, JobListResponse, MessageResponse
from ..rate_limit import limiter
from ..services import JobService

logger = get_logger("kuvaajat.routes.jobs")
router = APIRouter(prefix="/api", tags=["jobs"])


def get_job_service(db: Database, settings: Annotated[Settings, Depends(get_settings)]) -> JobService:
    return JobService(db, expiry_days=settings.job_expiry_days)


Jobs = Annotated[JobService, Depends(get_job_service)]


@router.post("/job", response_model=JobEnvelope, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def post_job(
    request: Request,
    payload: Annotated[dict[str, Any], Body()],
    identity: CurrentIdentity,
    service: Jobs,
):
    """
    Post a new job.

    The caller must be a customer and becomes the job owner; any
    ``customerId`` in the body is ignored. The body is parsed after the
    role check, so a photographer gets 403 even for a malformed body.
    """
    logger.info(f"POST /api/job | {identity.role}={identity.subject_id} | services={payload.get('services')}")
    created = await service.create_job(identity, payload)
    return JobEnvelope(message="Job posted successfully", job=created)


@router.get("/jobs", response_model=JobListResponse)
@limiter.limit("60/minute")
async def list_jobs(
    request: Request,
    identity: CurrentIdentity,
    service: Jobs,
    mine: bool = Query(False, description="Only jobs I posted (customers)"),
):
    """
    List jobs.

    Open jobs past their expiry show as ``expired`` to customers and are
    hidden from photographers.
    """
    logger.info(f"GET /api/jobs | {identity.role}={identity.subject_id} | mine={mine}")
    jobs = await service.list_jobs(identity, mine=mine)
    return JobListResponse(jobs=jobs)


@router.get("/jobs/{job_id}", response_model=JobEnvelope)
@limiter.limit("60/minute")
async def get_job(request: Request, job_id: str, identity: CurrentIdentity, service: Jobs):
    """Get a single job."""
    job = await service.get_job(identity, job_id)
    return JobEnvelope(job=job)


@router.delete("/job/{job_id}", response_model=MessageResponse)
@limiter.limit("10/minute")
async def delete_job(request: Request, job_id: str, identity: CurrentIdentity, service: Jobs):
    """
    Delete a job.

    Only the owning customer can delete. Bids on the job are not deleted.
    """
    logger.info(f"DELETE /api/job/{job_id} | customer={identity.subject_id}")
    await service.delete_job(identity, job_id)
    return MessageResponse(message="Job deleted successfully")
