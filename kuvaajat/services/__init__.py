"""Marketplace services: job posting, bidding, bid resolution and listings."""

from .bids import BidService
from .jobs import JobService
from .profiles import ProfileService
from .queries import BidQueryService
from .resolution import BidResolutionEngine

__all__ = [
    "BidQueryService",
    "BidResolutionEngine",
    "BidService",
    "JobService",
    "ProfileService",
]
