from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field


class UserType(str, Enum):
    WORKER = "worker"
    EMPLOYER = "employer"


class Availability(str, Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    WEEKENDS = "weekends"
    FLEXIBLE = "flexible"


class JobStatus(str, Enum):
    OPEN = "open"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


WORKER_CATEGORIES = [
    "all", "cleaning", "plumbing", "electrical", "gardening",
    "painting", "childcare", "elderly-care", "cooking",
]


# ----------------------------------------------------------------------
# Rows as stored by the backend
# ----------------------------------------------------------------------

class Worker(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = ""
    phone: Optional[str] = ""
    location: Optional[str] = ""
    skills: Optional[str] = ""  # comma-separated free text
    experience: Optional[str] = ""
    availability: Optional[Availability] = Availability.FULL_TIME
    is_verified: bool = False
    id_document_url: Optional[str] = None
    selfie_url: Optional[str] = None
    rating: Optional[float] = Field(0, ge=0, le=5)
    completed_jobs: Optional[int] = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Employer(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = ""
    id_number: Optional[str] = ""
    is_verified: bool = False
    id_document_url: Optional[str] = None
    selfie_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Job(BaseModel):
    id: Optional[str] = None
    employer_id: str
    worker_id: Optional[str] = None
    title: str
    description: str
    category: str
    location: str
    budget: float
    type: Optional[str] = None  # worker type requested when the job was posted
    status: str = JobStatus.OPEN.value  # kept as str: older rows carry values outside JobStatus
    applied: bool = False
    worker: Optional[dict] = None  # joined workers(full_name, rating)
    employer: Optional[dict] = None  # joined employers(full_name)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ----------------------------------------------------------------------
# Request bodies
# ----------------------------------------------------------------------

class WorkerSignupRequest(BaseModel):
    """Request body for POST /worker/signup (step 1 of the verification wizard)."""
    full_name: str
    email: str
    password: str
    confirm_password: str
    phone: str = ""
    location: str = ""
    skills: str = ""
    experience: str = ""
    availability: Availability = Availability.FULL_TIME


class EmployerSignupRequest(BaseModel):
    full_name: str
    email: str
    password: str
    confirm_password: str
    id_number: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


class WorkerProfileUpdate(BaseModel):
    """Partial update from the worker profile tab. Unset fields are left alone."""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    skills: Optional[str] = None
    experience: Optional[str] = None
    availability: Optional[Availability] = None


class EmployerProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    id_number: Optional[str] = None


class JobCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    budget: float
    location: str = Field(..., min_length=1)
    worker_type: str = Field(..., min_length=1, alias="workerType")
    category: Optional[str] = None

    model_config = {"populate_by_name": True}


# ----------------------------------------------------------------------
# Responses
# ----------------------------------------------------------------------

class SessionResponse(BaseModel):
    status: str
    user_id: str
    email: Optional[str] = None
    user_type: Optional[UserType] = None


class WizardSnapshot(BaseModel):
    """What the verification screen renders: current step plus the artifacts collected so far."""
    user_id: Optional[str] = None
    entry: str
    state: str
    has_document: bool = False
    document_name: Optional[str] = None
    has_selfie: bool = False
    camera_active: bool = False
    failure_reason: Optional[str] = None
    error: Optional[str] = None


class WorkerOverview(BaseModel):
    full_name: str
    is_verified: bool
    rating: float
    completed_jobs: int
    total_earnings: int
    location: str = ""
    skills: List[str] = []
    availability: Optional[str] = None


class EarningsSummary(BaseModel):
    total_earnings: int
    this_month: int
    pending_payment: int = 0


class BookingsSummary(BaseModel):
    total: int
    active: int
    completed: int
    jobs: List[Job] = []


class PaymentsSummary(BaseModel):
    total_spent: float
    this_month: int
    pending_amount: float
    pending_count: int
    completed_transactions: int
    recent_transactions: List[Job] = []
