from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Account role, fixed at signup"""
    EMPLOYER = "employer"
    JOB_SEEKER = "jobSeeker"


class Category(str, Enum):
    """Skills a job seeker can offer"""
    MAID = "maid"
    BABYSITTER = "babysitter"
    CAREGIVER = "caregiver"
    COOK = "cook"
    PETCARE = "petcare"
    GARDENER = "gardener"
    HANDYMAN = "handyman"


# Query-side filter value, never stored on a profile
ALL_CATEGORIES = "all"


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class ServiceType(str, Enum):
    HOUSE = "house"
    SHORT_TERM = "short-term"
    BUSINESS = "business"


class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class Decision(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"


class BusinessType(str, Enum):
    HOUSE_SERVICES = "house-services"
    SHORT_TERM = "short-term"
    BUSINESS_SUPPORT = "business-support"
    OTHER = "other"


CATEGORY_LABELS: Dict[str, str] = {
    Category.MAID.value: "Maid/Housekeeping",
    Category.BABYSITTER.value: "Babysitter",
    Category.CAREGIVER.value: "Elderly Caregiver",
    Category.COOK.value: "Cook",
    Category.PETCARE.value: "Pet Caretaker",
    Category.GARDENER.value: "Gardener",
    Category.HANDYMAN.value: "Handyman",
}

EXPERIENCE_LABELS: Dict[str, str] = {
    ExperienceLevel.BEGINNER.value: "Beginner (0-1 years)",
    ExperienceLevel.INTERMEDIATE.value: "Intermediate (1-3 years)",
    ExperienceLevel.EXPERT.value: "Expert (3+ years)",
}

SERVICE_TITLES: Dict[str, str] = {
    ServiceType.HOUSE.value: "House Service Providers",
    ServiceType.SHORT_TERM.value: "Short Term Service Providers",
    ServiceType.BUSINESS.value: "Business Service Providers",
}

BUSINESS_TYPE_LABELS: Dict[str, str] = {
    BusinessType.HOUSE_SERVICES.value: "House Services",
    BusinessType.SHORT_TERM.value: "Short Term Services",
    BusinessType.BUSINESS_SUPPORT.value: "Business Support",
    BusinessType.OTHER.value: "Other",
}


# -------- Identity --------
class Identity(BaseModel):
    user_id: str
    email: str
    display_name: Optional[str] = None
    phone: Optional[str] = None


class SignupPayload(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str
    confirm_password: str
    phone: str = ""
    role: Role = Role.JOB_SEEKER


class LoginPayload(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: Role


class AccountRecord(BaseModel):
    """Role bucket record written once at signup"""
    name: str = ""
    email: str = ""
    phone: str = ""
    user_type: Role
    created_at: datetime = Field(default_factory=datetime.utcnow)


# -------- Profiles --------
class ProfileModel(BaseModel):
    user_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    bio: str = ""
    user_type: Role = Role.JOB_SEEKER
    profile_image: Optional[str] = None
    selected_categories: List[Category] = []
    experience_level: Optional[ExperienceLevel] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ProfileUpdate(BaseModel):
    """Partial profile update; unset fields keep their stored values"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    bio: Optional[str] = None
    selected_categories: Optional[List[Category]] = None
    experience_level: Optional[ExperienceLevel] = None

    @field_validator('selected_categories')
    @classmethod
    def dedupe_categories(cls, v):
        if v is None:
            return v
        return list(dict.fromkeys(v))


# -------- Business Info --------
class BusinessInfoInput(BaseModel):
    company_name: str = ""
    business_type: Optional[BusinessType] = None
    location: str = ""
    description: str = ""


class BusinessInfoModel(BusinessInfoInput):
    user_id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# -------- Service Requests --------
class SubmitRequestPayload(BaseModel):
    provider_id: str
    service_type: ServiceType


class RespondPayload(BaseModel):
    decision: Decision


class ServiceRequestModel(BaseModel):
    request_id: str
    employer_id: str
    job_seeker_id: str
    service_type: ServiceType
    employer_name: str = ""
    employer_email: Optional[str] = None
    employer_phone: Optional[str] = None
    job_seeker_name: str = ""
    job_seeker_categories: List[str] = []
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.utcnow)
    responded_at: Optional[datetime] = None


# -------- Reviews --------
class ReviewInput(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = ""


class ReviewModel(BaseModel):
    review_id: str
    provider_id: str
    author_id: str
    author_name: str = ""
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)


# -------- Matching --------
class ProviderModel(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    city: str = ""
    state: str = ""
    bio: str = ""
    profile_image: Optional[str] = None
    selected_categories: List[Category] = []
    experience_level: Optional[ExperienceLevel] = None
    reviews: List[ReviewModel] = []
    review_count: int = 0
    average_rating: float = 0.0


# -------- Session --------
class SessionInfo(BaseModel):
    user_id: str
    email: str
    display_name: Optional[str] = None
    role: Role
    role_resolved: bool = True
    profile_complete: bool = False
    destination: str = "providers"  # providers, profile_completion
    service_type: Optional[ServiceType] = None


class AccountSummary(BaseModel):
    account: Optional[AccountRecord] = None
    business_info: Optional[BusinessInfoModel] = None
