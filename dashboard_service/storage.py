"""Entity store for the dashboard.

One ``DashboardStore`` wraps a SQLAlchemy engine and exposes the narrow
create/get/list/update operations the API needs for each table. It is built
explicitly by the app factory (or a test) and handed to the routes through
``app.state``.

Lookups for a missing key return ``None``. Unique-field collisions raise
``DuplicateKeyError``. Anything else coming out of SQLAlchemy propagates.
"""

from datetime import datetime, timedelta
from hashlib import sha256
from typing import List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from .models.models import HealthMetric, Message, Patient, Reminder, Resource, User, VitalSign
from .models.schemas import (
    HealthMetricCreate,
    MessageCreate,
    PatientCreate,
    ReminderCreate,
    ResourceCreate,
    UserCreate,
    VitalSignCreate,
    to_utc,
    utcnow,
)

RecordT = TypeVar("RecordT", bound=SQLModel)


class DuplicateKeyError(Exception):
    """A create collided with a unique column (username, patient display code)."""

    def __init__(self, entity: str, field: str, value: object):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} with {field} '{value}' already exists")


def hash_password(password: str) -> str:
    return sha256(password.encode("utf-8")).hexdigest()


class DashboardStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def _session(self) -> Session:
        # Rows are handed back to the API after the session closes
        return Session(self.engine, expire_on_commit=False)

    # =====================================================
    # Generic keyed-table helpers
    # =====================================================

    def _create(self, record: RecordT, unique_field: Optional[str] = None) -> RecordT:
        model = type(record)
        with self._session() as session:
            if unique_field is not None:
                value = getattr(record, unique_field)
                column = getattr(model, unique_field)
                if session.exec(select(model).where(column == value)).first():
                    raise DuplicateKeyError(model.__name__, unique_field, value)

            session.add(record)
            try:
                session.commit()
            except IntegrityError as e:
                # Lost a race with a concurrent insert of the same unique value
                session.rollback()
                if unique_field is None:
                    raise
                raise DuplicateKeyError(
                    model.__name__, unique_field, getattr(record, unique_field)
                ) from e
            session.refresh(record)
            return record

    def _get(self, model: Type[RecordT], key: int) -> Optional[RecordT]:
        with self._session() as session:
            return session.get(model, key)

    def _list_all(self, model: Type[RecordT]) -> List[RecordT]:
        with self._session() as session:
            return list(session.exec(select(model).order_by(model.id.asc())).all())

    def _count(self, model: Type[SQLModel]) -> int:
        with self._session() as session:
            return session.exec(select(func.count()).select_from(model)).one()

    def ping(self) -> None:
        """Round-trip to the database. Raises SQLAlchemyError when unreachable."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    # =====================================================
    # Users
    # =====================================================

    def create_user(self, payload: UserCreate) -> User:
        data = payload.model_dump(exclude={"password"})
        user = User(**data, password_hash=hash_password(payload.password))
        return self._create(user, unique_field="username")

    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._session() as session:
            return session.exec(select(User).where(User.username == username)).first()

    def list_users(self) -> List[User]:
        return self._list_all(User)

    # =====================================================
    # Patients
    # =====================================================

    def create_patient(self, payload: PatientCreate) -> Patient:
        return self._create(Patient(**payload.model_dump()), unique_field="patient_id")

    def get_patient(self, patient_id: int) -> Optional[Patient]:
        return self._get(Patient, patient_id)

    def list_patients(self) -> List[Patient]:
        return self._list_all(Patient)

    def count_patients(self) -> int:
        return self._count(Patient)

    def update_patient_status(self, patient_id: int, status: str) -> Optional[Patient]:
        with self._session() as session:
            patient = session.get(Patient, patient_id)
            if not patient:
                return None
            patient.status = status
            session.add(patient)
            session.commit()
            session.refresh(patient)
            return patient

    # =====================================================
    # Vital Signs (append-only)
    # =====================================================

    def create_vital_sign(self, payload: VitalSignCreate) -> VitalSign:
        data = payload.model_dump()
        data["timestamp"] = data.get("timestamp") or utcnow()
        return self._create(VitalSign(**data))

    def list_vital_signs(self, patient_id: int, limit: int = 10) -> List[VitalSign]:
        """Newest first."""
        stmt = (
            select(VitalSign)
            .where(VitalSign.patient_id == patient_id)
            .order_by(VitalSign.timestamp.desc(), VitalSign.id.desc())
            .limit(limit)
        )
        with self._session() as session:
            return list(session.exec(stmt).all())

    def get_latest_vital_sign(self, patient_id: int) -> Optional[VitalSign]:
        latest = self.list_vital_signs(patient_id, limit=1)
        return latest[0] if latest else None

    # =====================================================
    # Reminders
    # =====================================================

    def create_reminder(self, payload: ReminderCreate) -> Reminder:
        return self._create(Reminder(**payload.model_dump()))

    def get_reminder(self, reminder_id: int) -> Optional[Reminder]:
        return self._get(Reminder, reminder_id)

    def list_all_reminders(self) -> List[Reminder]:
        return self._list_all(Reminder)

    def list_reminders(self, patient_id: int) -> List[Reminder]:
        """A patient's reminders, soonest due first."""
        stmt = (
            select(Reminder)
            .where(Reminder.patient_id == patient_id)
            .order_by(Reminder.due_time.asc(), Reminder.id.asc())
        )
        with self._session() as session:
            return list(session.exec(stmt).all())

    def list_upcoming_reminders(
        self, limit: Optional[int] = 5, now: Optional[datetime] = None
    ) -> List[Reminder]:
        """
        Incomplete reminders due at or after `now`, soonest first.
        `limit=None` returns all of them.
        `now` is evaluated per call; nothing is stored.
        """
        now = to_utc(now) if now else utcnow()
        stmt = (
            select(Reminder)
            .where(Reminder.completed == False)  # noqa: E712
            .where(Reminder.due_time >= now)
            .order_by(Reminder.due_time.asc(), Reminder.id.asc())
            .limit(limit)
        )
        with self._session() as session:
            return list(session.exec(stmt).all())

    def complete_reminder(self, reminder_id: int) -> Optional[Reminder]:
        """Marks a reminder done. Completing an already completed reminder is a no-op."""
        with self._session() as session:
            reminder = session.get(Reminder, reminder_id)
            if not reminder:
                return None
            if reminder.completed:
                return reminder
            reminder.completed = True
            session.add(reminder)
            session.commit()
            session.refresh(reminder)
            return reminder

    # =====================================================
    # Messages (append-only)
    # =====================================================

    def create_message(self, payload: MessageCreate) -> Message:
        data = payload.model_dump()
        data["timestamp"] = data.get("timestamp") or utcnow()
        return self._create(Message(**data))

    def list_messages(self, limit: Optional[int] = 20) -> List[Message]:
        """
        Oldest first, truncated from the front: with a long history and a
        small limit this returns the start of the conversation, not the tail.
        `limit=None` returns the whole history.
        """
        stmt = select(Message).order_by(Message.timestamp.asc(), Message.id.asc()).limit(limit)
        with self._session() as session:
            return list(session.exec(stmt).all())

    # =====================================================
    # Education Resources
    # =====================================================

    def create_resource(self, payload: ResourceCreate) -> Resource:
        return self._create(Resource(**payload.model_dump()))

    def get_resource(self, resource_id: int) -> Optional[Resource]:
        return self._get(Resource, resource_id)

    def list_resources(self) -> List[Resource]:
        return self._list_all(Resource)

    # =====================================================
    # Health Metrics (append-only)
    # =====================================================

    def create_health_metric(self, payload: HealthMetricCreate) -> HealthMetric:
        return self._create(HealthMetric(**payload.model_dump()))

    def create_health_metrics(self, payloads: Sequence[HealthMetricCreate]) -> List[HealthMetric]:
        metrics = [HealthMetric(**p.model_dump()) for p in payloads]
        with self._session() as session:
            session.add_all(metrics)
            session.commit()
            for metric in metrics:
                session.refresh(metric)
        return metrics

    def list_health_metrics(
        self, metric_type: str, days: int = 7, now: Optional[datetime] = None
    ) -> List[HealthMetric]:
        cutoff = (to_utc(now) if now else utcnow()) - timedelta(days=days)
        stmt = (
            select(HealthMetric)
            .where(HealthMetric.metric_type == metric_type)
            .where(HealthMetric.date >= cutoff)
            .order_by(HealthMetric.date.asc(), HealthMetric.id.asc())
        )
        with self._session() as session:
            return list(session.exec(stmt).all())
