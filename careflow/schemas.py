from typing import Optional, List, Literal, Dict
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

# --------------------------
# Enumerations
# --------------------------
ProviderType = Literal[
    "clinic", "pharmacy", "telehealth", "hospital", "pop_up", "mobile", "urgent_care"
]

ServiceType = Literal[
    "general", "dental", "maternal_care", "urgent_care", "mental_health",
    "pediatric", "vaccination", "specialty", "diagnostic",
]

RequestStatus = Literal["pending", "matched", "fulfilled", "cancelled"]

TimeSlot = Literal["morning", "afternoon", "evening"]

MatchAlgorithm = Literal["distance", "capacity", "fragility", "smart"]

# --------------------------
# Shared Submodels
# --------------------------
class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

class ProviderFilters(BaseModel):
    """
    Recognised provider filters. Every field defaults to None,
    meaning "no constraint on this attribute".
    """
    provider_type: Optional[ProviderType] = None
    service_type: Optional[ServiceType] = None
    accepts_walk_ins: Optional[bool] = None
    telehealth_available: Optional[bool] = None
    language: Optional[str] = None
    insurance: Optional[str] = None

    def matches(self, p: "Provider") -> bool:
        if self.provider_type is not None and p.type != self.provider_type:
            return False
        if self.service_type is not None and self.service_type not in p.services:
            return False
        if self.accepts_walk_ins is not None and p.accepts_walk_ins != self.accepts_walk_ins:
            return False
        if self.telehealth_available is not None and p.telehealth_available != self.telehealth_available:
            return False
        if self.language is not None and self.language not in p.languages_spoken:
            return False
        if self.insurance is not None and self.insurance not in p.insurance_accepted:
            return False
        return True

# --------------------------
# Providers
# --------------------------
class ProviderIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: ProviderType
    location: Optional[LatLng] = None
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    services: List[ServiceType] = []
    insurance_accepted: List[str] = []
    languages_spoken: List[str] = ["English"]
    current_wait_time: Optional[int] = Field(None, ge=0)
    accepts_walk_ins: bool = False
    telehealth_available: bool = False
    rating: Optional[float] = Field(None, ge=0, le=5)

class Provider(ProviderIn):
    id: str
    is_active: bool = True

class WaitTimeIn(BaseModel):
    # None resets to "unknown"
    minutes: Optional[int] = Field(None, ge=0)

class NearbyProviderResult(BaseModel):
    provider_id: str
    provider_name: str
    provider_type: ProviderType
    distance_miles: float
    current_wait_time: Optional[int] = None
    services: List[ServiceType] = []
    address: Optional[str] = None
    phone: Optional[str] = None

class MatchCandidate(NearbyProviderResult):
    score: float

# --------------------------
# Patient Requests
# --------------------------
class RequestIn(BaseModel):
    location: Optional[LatLng] = None
    address: Optional[str] = None
    requested_service: ServiceType
    urgency_level: int = Field(3, ge=1, le=5)
    preferred_date: Optional[datetime] = None
    preferred_time_slot: Optional[TimeSlot] = None
    insurance_provider: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def _needs_somewhere(self):
        if self.location is None and not (self.address or "").strip():
            raise ValueError("either location or address is required")
        return self

class PatientRequest(BaseModel):
    id: str
    location: LatLng
    address: Optional[str] = None
    requested_service: ServiceType
    urgency_level: int = Field(..., ge=1, le=5)
    preferred_date: Optional[datetime] = None
    preferred_time_slot: Optional[TimeSlot] = None
    insurance_provider: Optional[str] = None
    notes: Optional[str] = None
    status: RequestStatus = "pending"
    matched_provider_id: Optional[str] = None
    match_score: Optional[float] = Field(None, ge=0, le=1)
    created_at: datetime

    @model_validator(mode="after")
    def _match_fields_paired(self):
        if (self.matched_provider_id is None) != (self.match_score is None):
            raise ValueError("matched_provider_id and match_score must be set together")
        return self

class NearbyRequest(PatientRequest):
    distance_miles: float

# --------------------------
# Matching
# --------------------------
class MatchOut(BaseModel):
    request_id: str
    matched: bool
    provider_id: Optional[str] = None
    score: Optional[float] = None
    candidates: List[MatchCandidate] = []

class AutoMatchOut(BaseModel):
    processed: int
    matched: int
    skipped: int
    failed: int

# --------------------------
# Stats
# --------------------------
class RequestStats(BaseModel):
    total: int = 0
    pending: int = 0
    matched: int = 0
    fulfilled: int = 0
    cancelled: int = 0
    by_service: Dict[str, int] = {}
    by_urgency: Dict[int, int] = {}
    average_match_score: float = 0.0
