"""
Job posting service.

Validates and persists job requests on behalf of customers, derives the
read-time ``expired`` status, and handles owner-only deletion.
"""

import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from ..auth import CUSTOMER, PHOTOGRAPHER, Identity
from ..database import JOB_KIND, KIND_FIELD, RecordStore
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..logging_config import get_logger, log_job_event
from ..models import DIFFICULTIES, SERVICE_DETAIL_FIELDS, SERVICE_TAGS, JobCreate, validate_request

logger = get_logger("kuvaajat.jobs")

DEFAULT_EXPIRY_DAYS = 90


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Serialize a datetime as a UTC ISO-8601 string (naive means UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value) -> datetime | None:
    """Parse a stored timestamp; unparseable values read as None."""
    if value is None or isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_expired(job: dict, now: datetime) -> bool:
    """An open job whose ``expiresAt`` has passed reads as expired."""
    if job.get("status") != "open":
        return False
    expires_at = parse_timestamp(job.get("expiresAt"))
    return expires_at is not None and expires_at < now


def job_view(job: dict, now: datetime) -> dict:
    """Copy of a job with the derived status applied. Never persisted."""
    view = dict(job)
    if is_expired(job, now):
        view["status"] = "expired"
    return view


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class JobService:
    """Creates, lists and deletes job postings."""

    def __init__(
        self,
        store: RecordStore,
        expiry_days: int = DEFAULT_EXPIRY_DAYS,
        now: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.expiry_days = expiry_days
        self._now = now

    # === Validation ===

    def _validate(self, job: JobCreate) -> list[str]:
        """Check a job request in contract order. Returns the normalized services."""
        if not job.description or not job.description.strip():
            raise ValidationError("Description is required")

        if not job.services:
            raise ValidationError("At least one service must be selected")
        services: list[str] = []
        for tag in job.services:
            if tag not in SERVICE_TAGS:
                raise ValidationError(f"Unknown service: {tag}")
            if tag not in services:
                services.append(tag)

        if not job.city or not job.city.strip():
            raise ValidationError("City is required")
        if job.radius is None:
            raise ValidationError("Radius is required")
        if not _is_number(job.radius) or job.radius < 0:
            raise ValidationError("Radius must be a non-negative number")
        if job.duration is None or not str(job.duration).strip():
            raise ValidationError("Duration is required")
        if not job.difficulty:
            raise ValidationError("Difficulty is required")
        if job.difficulty not in DIFFICULTIES:
            raise ValidationError(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}")

        if not job.budget_unknown:
            if not _is_number(job.budget_min) or job.budget_min <= 0:
                raise ValidationError("Minimum budget must be a positive number")
            if not _is_number(job.budget_max) or job.budget_max <= 0:
                raise ValidationError("Maximum budget must be a positive number")
            if job.budget_min >= job.budget_max:
                raise ValidationError("Maximum budget must be greater than minimum budget")

        if job.date is None and job.date_range is None:
            raise ValidationError("Either a date or a date range is required")
        if job.date_range is not None and job.date_range.end < job.date_range.start:
            raise ValidationError("Date range end must not be before its start")

        return services

    # === Operations ===

    async def create_job(self, identity: Identity, job: JobCreate | dict) -> dict:
        """Persist a new open job owned by the calling customer.

        ``job`` may be a raw request body; it is parsed only after the role check.
        """
        identity.require_role(CUSTOMER, "Only customers can post jobs")
        if not isinstance(job, JobCreate):
            job = validate_request(JobCreate, job)
        services = self._validate(job)

        now = self._now()
        expires_at = job.expires_at or now + timedelta(days=self.expiry_days)
        job_id = str(uuid.uuid4())

        record = {
            "id": job_id,
            "jobId": job_id,
            KIND_FIELD: JOB_KIND,
            "customerId": identity.subject_id,
            "title": job.title.strip() if job.title and job.title.strip() else None,
            "description": job.description.strip(),
            "services": services,
            "city": job.city.strip(),
            "area": job.area,
            "exactAddress": job.exact_address,
            "radius": job.radius,
            "date": job.date.isoformat() if job.date else None,
            "dateRange": (
                {"start": job.date_range.start.isoformat(), "end": job.date_range.end.isoformat()}
                if job.date_range
                else None
            ),
            "duration": job.duration,
            "difficulty": job.difficulty,
            "budgetUnknown": job.budget_unknown,
            "budgetMin": None if job.budget_unknown else job.budget_min,
            "budgetMax": None if job.budget_unknown else job.budget_max,
            "status": "open",
            "acceptedBidId": None,
            "acceptedAt": None,
            "createdAt": to_iso(now),
            "expiresAt": to_iso(expires_at),
        }
        # A detail block is null unless its service was selected
        details = job.service_details()
        for tag, field in SERVICE_DETAIL_FIELDS.items():
            record[field] = (details[field] or {}) if tag in services else None

        created = await self.store.put(record)
        log_job_event("create", job_id, identity.subject_id)
        return created

    async def list_jobs(self, identity: Identity, mine: bool = False) -> list[dict]:
        """All jobs visible to the caller, with expiry applied.

        Customers see every status including ``expired``; photographers never
        see expired jobs. ``mine`` narrows a customer's list to their own jobs.
        """
        if mine and identity.is_customer:
            jobs = await self.store.query_by_kind(JOB_KIND, customerId=identity.subject_id)
        else:
            jobs = await self.store.query_by_kind(JOB_KIND)

        now = self._now()
        views = [job_view(job, now) for job in jobs]
        if identity.role == PHOTOGRAPHER:
            views = [v for v in views if v.get("status") != "expired"]
        return views

    async def get_job(self, identity: Identity, job_id: str) -> dict:
        """Single job view; expired jobs are hidden from photographers."""
        job = await self.store.get(job_id)
        if not job or job.get(KIND_FIELD) != JOB_KIND:
            raise NotFoundError("Job not found")
        view = job_view(job, self._now())
        if identity.role == PHOTOGRAPHER and view.get("status") == "expired":
            raise NotFoundError("Job not found")
        return view

    async def delete_job(self, identity: Identity, job_id: str) -> None:
        """Hard-delete a job owned by the caller. Its bids are left in place."""
        identity.require_role(CUSTOMER, "Only customers can delete jobs")

        record = await self.store.get(job_id)
        if not record:
            raise NotFoundError("Job not found")
        if record.get(KIND_FIELD) != JOB_KIND:
            raise ValidationError("Record is not a job")
        if record.get("customerId") != identity.subject_id:
            log_job_event("delete", job_id, identity.subject_id, success=False, error="not owner")
            raise AuthorizationError("Only the job owner can delete it")

        await self.store.delete(job_id)
        log_job_event("delete", job_id, identity.subject_id)
