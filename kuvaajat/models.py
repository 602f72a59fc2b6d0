"""Pydantic models for API requests and responses.

Request models are deliberately lenient about presence: the services check
required fields in a fixed order and report the specific failing
constraint, so only type errors are caught here. Services call
``validate_request`` after their role check, so a caller with the wrong
role is refused before the body is inspected.
"""

import datetime as dt
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictFloat
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

# =============================================================================
# Vocabulary
# =============================================================================

# Service tag -> record field of its conditional detail block
SERVICE_DETAIL_FIELDS = {
    "valokuvat": "photoDetails",
    "videokuvaus": "videoDetails",
    "drooni": "droneDetails",
    "lyhytvideot": "shortVideoDetails",
    "editointi": "editingDetails",
}
SERVICE_TAGS = tuple(SERVICE_DETAIL_FIELDS)

DIFFICULTIES = ("helppo", "keskitaso", "vaativa")

RESOLUTION_STATUSES = ("accepted", "rejected")


def validate_request(model: type[BaseModel], payload: Any) -> Any:
    """Parse a raw request body, reporting the first type error as a ValidationError."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"{field}: {first.get('msg')}" if field else first.get("msg")) from e


# =============================================================================
# Job Models
# =============================================================================

class DateRange(BaseModel):
    """Inclusive date range for a job."""
    start: dt.date
    end: dt.date


class JobCreate(BaseModel):
    """Request to post a job."""
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    description: str | None = None
    services: list[str] | None = None
    city: str | None = None
    area: str | None = None
    exact_address: str | None = Field(None, alias="exactAddress")
    radius: StrictFloat | None = None
    date: dt.date | None = None
    date_range: DateRange | None = Field(None, alias="dateRange")
    duration: str | int | float | None = None
    difficulty: str | None = None
    budget_min: StrictFloat | None = Field(None, validation_alias=AliasChoices("budgetMin", "budget_min"))
    budget_max: StrictFloat | None = Field(None, validation_alias=AliasChoices("budgetMax", "budget_max"))
    budget_unknown: bool = Field(False, alias="budgetUnknown")
    expires_at: dt.datetime | None = Field(None, alias="expiresAt")

    # Service-specific details, kept only when the service is selected
    photo_details: dict[str, Any] | None = Field(None, alias="photoDetails")
    video_details: dict[str, Any] | None = Field(None, alias="videoDetails")
    drone_details: dict[str, Any] | None = Field(None, alias="droneDetails")
    short_video_details: dict[str, Any] | None = Field(None, alias="shortVideoDetails")
    editing_details: dict[str, Any] | None = Field(None, alias="editingDetails")

    def service_details(self) -> dict[str, dict[str, Any] | None]:
        """Detail blocks keyed by their record field name."""
        return {
            "photoDetails": self.photo_details,
            "videoDetails": self.video_details,
            "droneDetails": self.drone_details,
            "shortVideoDetails": self.short_video_details,
            "editingDetails": self.editing_details,
        }


# =============================================================================
# Bid Models
# =============================================================================

class BidCreate(BaseModel):
    """Request to bid on a job."""
    model_config = ConfigDict(populate_by_name=True)

    job_id: str | None = Field(None, alias="jobId")
    price: StrictFloat | None = None
    proposal: str | None = None


class BidStatusUpdate(BaseModel):
    """Request to accept or reject a bid."""
    status: str | None = None


# =============================================================================
# Profile Models
# =============================================================================

class ProfileUpdate(BaseModel):
    """Request to save the caller's photographer profile.

    Field names follow the profile form of the web client. Unknown keys are
    dropped on save.
    """
    model_config = ConfigDict(populate_by_name=True)

    # Identity and contact
    name: str | None = None
    contact_name: str | None = Field(None, alias="contactName")
    profile_picture: str | None = Field(None, alias="profilePicture")
    phone_number: str | None = Field(None, alias="phoneNumber")
    phone_number_visible: bool = Field(True, alias="phoneNumberVisible")
    preferred_contact_method: str | None = Field(None, alias="preferredContactMethod")

    # Business
    company_name: str | None = Field(None, alias="companyName")
    business_id: str | None = Field(None, alias="businessId")
    business_id_visible: bool = Field(True, alias="businessIdVisible")
    vat_obliged: bool = Field(False, alias="vatObliged")
    billing_model: str | None = Field(None, alias="billingModel")
    operator_type: str | None = Field(None, alias="operatorType")
    team_size: int | None = Field(None, alias="teamSize", ge=1)
    roles: list[str] = Field(default_factory=list)

    # Presentation
    title: str | None = None
    short_description: str | None = Field(None, alias="shortDescription")
    long_description: str | None = Field(None, alias="longDescription")
    profile_languages: list[str] = Field(default_factory=list, alias="profileLanguages")
    experience_level: str | None = Field(None, alias="experienceLevel")
    categories: list[str] = Field(default_factory=list)
    style_tags: list[str] = Field(default_factory=list, alias="styleTags")
    specializations: list[str] = Field(default_factory=list)

    # Service area
    hometown: str | None = None
    service_areas: list[str] = Field(default_factory=list, alias="serviceAreas")
    max_travel_distance: StrictFloat | None = Field(None, alias="maxTravelDistance", ge=0)
    travel_costs: Any = Field(None, alias="travelCosts")
    serves_all_finland: bool = Field(False, alias="servesAllFinland")
    serves_abroad: bool = Field(False, alias="servesAbroad")

    # Pricing and delivery
    main_services: list[str] = Field(default_factory=list, alias="mainServices")
    min_starting_price: StrictFloat | None = Field(None, alias="minStartingPrice", ge=0)
    day_hour_price: Any = Field(None, alias="dayHourPrice")
    packages: list[Any] = Field(default_factory=list)
    included_in_price: list[str] = Field(default_factory=list, alias="includedInPrice")
    additional_services: list[Any] = Field(default_factory=list, alias="additionalServices")
    average_delivery_time: str | None = Field(None, alias="averageDeliveryTime")
    revision_rounds: int | None = Field(None, alias="revisionRounds", ge=0)
    delivery_formats: list[str] = Field(default_factory=list, alias="deliveryFormats")
    format_capabilities: list[str] = Field(default_factory=list, alias="formatCapabilities")

    # Equipment and qualifications
    cameras: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    lighting_audio: list[str] = Field(default_factory=list, alias="lightingAudio")
    drone_certifications: list[str] = Field(default_factory=list, alias="droneCertifications")
    liability_insurance: Any = Field(None, alias="liabilityInsurance")
    safety_cards: list[str] = Field(default_factory=list, alias="safetyCards")

    # Availability and terms
    weekly_availability: list[Any] = Field(default_factory=list, alias="weeklyAvailability")
    lead_time: str | None = Field(None, alias="leadTime")
    has_contract_template: bool = Field(False, alias="hasContractTemplate")
    cancellation_terms: str | None = Field(None, alias="cancellationTerms")
    deposit_required: bool = Field(False, alias="depositRequired")

    # Links
    website: str | None = None
    instagram: str | None = None
    tiktok: str | None = None
    youtube: str | None = None
    vimeo: str | None = None
    media_kit: str | None = Field(None, alias="mediaKit")


class PortfolioItem(BaseModel):
    """A single portfolio entry pointing at uploaded media."""
    url: str | None = None
    type: Literal["image", "video"] = "image"
    caption: str | None = None


class PortfolioUpdate(BaseModel):
    """Request to save the caller's portfolio."""
    description: str | None = None
    items: list[PortfolioItem] = Field(default_factory=list)


# =============================================================================
# Response Models
# =============================================================================

class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    success: bool = True
    message: str


class JobEnvelope(BaseModel):
    """Single job response."""
    success: bool = True
    message: str | None = None
    job: dict[str, Any]


class JobListResponse(BaseModel):
    """List of jobs visible to the caller."""
    success: bool = True
    jobs: list[dict[str, Any]]


class BidEnvelope(BaseModel):
    """Single bid response."""
    success: bool = True
    message: str | None = None
    bid: dict[str, Any]


class BidListResponse(BaseModel):
    """List of enriched bids."""
    success: bool = True
    bids: list[dict[str, Any]]


class ProfileEnvelope(BaseModel):
    """Single profile response."""
    success: bool = True
    message: str | None = None
    profile: dict[str, Any]


class PortfolioEnvelope(BaseModel):
    """Single portfolio response."""
    success: bool = True
    message: str | None = None
    portfolio: dict[str, Any]
