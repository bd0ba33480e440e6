# This file contains the SQLModel tables for the Dashboard Service database

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from .schemas import utcnow


class User(SQLModel, table=True):
    """
    A dashboard user (nurse, doctor, ...). `role` is an open tag.
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, nullable=False)
    # Note: only the hash is stored; never exposed through UserResponse
    password_hash: str = Field(nullable=False)
    name: str = Field(nullable=False)
    email: str = Field(nullable=False)
    role: str = Field(default="nurse", nullable=False)
    avatar: Optional[str] = Field(default=None)


class Patient(SQLModel, table=True):
    __tablename__ = "patients"

    id: Optional[int] = Field(default=None, primary_key=True)
    # Human facing code shown on the dashboard, e.g. "P-2458"
    patient_id: str = Field(index=True, unique=True, nullable=False)
    name: str = Field(nullable=False)
    avatar: Optional[str] = Field(default=None)
    condition: str = Field(nullable=False)
    status: str = Field(default="stable", nullable=False)
    notes: Optional[str] = Field(default=None)


class VitalSign(SQLModel, table=True):
    """Append-only. patient_id is not a foreign key; orphans are tolerated."""

    __tablename__ = "vital_signs"

    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: int = Field(index=True, nullable=False)
    timestamp: datetime = Field(default_factory=utcnow, index=True, nullable=False)

    # All optional
    heart_rate: Optional[int] = Field(default=None)
    blood_pressure_systolic: Optional[int] = Field(default=None)
    blood_pressure_diastolic: Optional[int] = Field(default=None)
    temperature: Optional[float] = Field(default=None)
    respiratory_rate: Optional[int] = Field(default=None)
    oxygen_saturation: Optional[int] = Field(default=None)
    pain_level: Optional[int] = Field(default=None)


class Reminder(SQLModel, table=True):
    __tablename__ = "reminders"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(nullable=False)
    description: str = Field(nullable=False)
    patient_id: int = Field(index=True, nullable=False)
    due_time: datetime = Field(index=True, nullable=False)
    # Only ever flips False -> True (see DashboardStore.complete_reminder)
    completed: bool = Field(default=False, nullable=False)
    priority: str = Field(default="medium", nullable=False)
    type: str = Field(nullable=False)


class Message(SQLModel, table=True):
    """Append-only global chat log. sender_id 0 is the assistant."""

    __tablename__ = "messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    sender_id: int = Field(nullable=False)
    content: str = Field(nullable=False)
    timestamp: datetime = Field(default_factory=utcnow, index=True, nullable=False)
    is_bot: bool = Field(default=False, nullable=False)


class Resource(SQLModel, table=True):
    __tablename__ = "resources"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(nullable=False)
    description: str = Field(nullable=False)
    resource_type: str = Field(nullable=False)
    url: str = Field(nullable=False)
    icon: str = Field(nullable=False)


class HealthMetric(SQLModel, table=True):
    __tablename__ = "health_metrics"

    id: Optional[int] = Field(default=None, primary_key=True)
    metric_type: str = Field(index=True, nullable=False)
    date: datetime = Field(index=True, nullable=False)
    value: float = Field(nullable=False)
    change: Optional[float] = Field(default=None)
