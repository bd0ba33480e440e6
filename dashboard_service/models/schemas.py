# This file contains Pydantic models (schemas) for the Dashboard Service API

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Current time as an aware UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc)


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive input is taken to be UTC already; aware input is converted."""
    if value is None:
        return value
    if value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# --- Enums ---
class PatientStatus(str, Enum):
    """Known patient statuses. The column itself accepts any string."""

    STABLE = "stable"
    MONITOR = "monitor"
    ATTENTION = "attention"


class ReminderPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReminderType(str, Enum):
    MEDICATION = "medication"
    VITAL_CHECK = "vital_check"
    GENERAL_CARE = "general_care"
    NUTRITION = "nutrition"


class ResourceType(str, Enum):
    PDF = "pdf"
    VIDEO = "video"
    DOCUMENT = "document"
    LINK = "link"


class MetricType(str, Enum):
    BLOOD_PRESSURE = "blood_pressure"
    GLUCOSE = "glucose"
    MEDICATION_ADHERENCE = "medication_adherence"


class Urgency(str, Enum):
    NOW = "now"
    SOON = "soon"
    LATER = "later"


class Completion(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


# --- Base Schema ---
class ApiModel(BaseModel):
    """
    camelCase on the wire, snake_case in Python. Inputs accept both.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )


class ResponseModel(ApiModel):
    # Lets FastAPI read SQLModel rows directly
    model_config = ConfigDict(from_attributes=True)


# --- Users ---
class UserCreate(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: str = "nurse"
    avatar: Optional[str] = None


class UserResponse(ResponseModel):
    """User as returned by the API. The credential is never included."""

    id: int
    username: str
    name: str
    email: str
    role: str
    avatar: Optional[str] = None


# --- Patients ---
class PatientCreate(ApiModel):
    patient_id: str = Field(..., min_length=1, description="Display code, e.g. P-2458")
    name: str = Field(..., min_length=1)
    avatar: Optional[str] = None
    condition: str
    status: str = PatientStatus.STABLE.value
    notes: Optional[str] = None


class PatientResponse(ResponseModel):
    id: int
    patient_id: str
    name: str
    avatar: Optional[str] = None
    condition: str
    status: str
    notes: Optional[str] = None


class PatientStatusUpdate(ApiModel):
    status: str = Field(..., min_length=1)
    model_config = ConfigDict(extra="forbid")


# --- Vital Signs ---
class VitalSignCreate(ApiModel):
    patient_id: int
    # Server defaults to now if missing
    timestamp: Optional[datetime] = None

    heart_rate: Optional[int] = Field(None, gt=0, lt=300, description="BPM")
    blood_pressure_systolic: Optional[int] = Field(None, ge=0, le=300, description="mmHg")
    blood_pressure_diastolic: Optional[int] = Field(None, ge=0, le=200, description="mmHg")
    temperature: Optional[float] = Field(None, ge=25.0, le=45.0, description="Celsius")
    respiratory_rate: Optional[int] = Field(None, ge=0, le=100, description="Breaths/min")
    oxygen_saturation: Optional[int] = Field(None, ge=0, le=100, description="SpO2 %")
    pain_level: Optional[int] = Field(None, ge=0, le=10)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value)


class VitalSignResponse(ResponseModel):
    id: int
    patient_id: int
    timestamp: datetime
    heart_rate: Optional[int] = None
    blood_pressure_systolic: Optional[int] = None
    blood_pressure_diastolic: Optional[int] = None
    temperature: Optional[float] = None
    respiratory_rate: Optional[int] = None
    oxygen_saturation: Optional[int] = None
    pain_level: Optional[int] = None


# --- Reminders ---
class ReminderCreate(ApiModel):
    title: str = Field(..., min_length=1)
    description: str
    patient_id: int
    due_time: datetime
    completed: bool = False
    priority: ReminderPriority = ReminderPriority.MEDIUM
    # Open tag; ReminderType lists the ones the dashboard has icons for
    type: str = Field(..., min_length=1)

    @field_validator("due_time")
    @classmethod
    def normalize_due_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value)


class ReminderResponse(ResponseModel):
    id: int
    title: str
    description: str
    patient_id: int
    due_time: datetime
    completed: bool
    priority: str
    type: str


class ReminderLabel(ApiModel):
    text: str
    urgency: Urgency


class ReminderGroup(ApiModel):
    label: str
    reminders: List[ReminderResponse]


# --- Messages ---
class MessageCreate(ApiModel):
    sender_id: int = Field(..., ge=0, description="0 is the assistant")
    content: str = Field(..., min_length=1)
    timestamp: Optional[datetime] = None
    is_bot: bool = False

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value)


class MessageResponse(ResponseModel):
    id: int
    sender_id: int
    content: str
    timestamp: datetime
    is_bot: bool


# --- Education Resources ---
class ResourceCreate(ApiModel):
    title: str = Field(..., min_length=1)
    description: str
    resource_type: ResourceType
    url: str
    icon: str


class ResourceResponse(ResponseModel):
    id: int
    title: str
    description: str
    resource_type: str
    url: str
    icon: str


# --- Health Metrics ---
class HealthMetricCreate(ApiModel):
    metric_type: MetricType
    date: datetime
    value: float
    change: Optional[float] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value)


class HealthMetricResponse(ResponseModel):
    id: int
    metric_type: str
    date: datetime
    value: float
    change: Optional[float] = None


class MetricSummary(ApiModel):
    metric_type: str
    count: int
    latest_value: Optional[float] = None
    average_change: float


# --- Dashboard ---
class DashboardStats(ApiModel):
    total_patients: int
    upcoming_reminders: int
    reminders_due_today: int
    total_messages: int
    user_messages: int


# --- Health Check Models ---
class Dependency(BaseModel):
    status: str
    response_time_ms: Optional[int] = None
    error: Optional[str] = None


class HealthCheckResponse(BaseModel):
    service: str
    status: str
    dependencies: Dict[str, Dependency] = Field(default_factory=dict)
