"""Dashboard Service

REST API behind the nursing dashboard: patients, vital signs, reminders,
the virtual assistant chat, education resources and health metric trends.
"""

# =====================================================
# Standard Library Imports
# =====================================================
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import List, Optional

# =====================================================
# Third-Party Imports
# =====================================================
from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

# =====================================================
# Local Imports
# =====================================================
from . import rules
from .assistant import ReplyPolicy, build_auto_reply, get_policy, reply_offset
from .cache import VitalsCache, create_redis_client
from .config import Config
from .db import close_db_connection, create_db_engine, init_db
from .models.models import Message
from .models.schemas import (
    Completion,
    DashboardStats,
    Dependency,
    HealthCheckResponse,
    HealthMetricCreate,
    HealthMetricResponse,
    MessageCreate,
    MessageResponse,
    MetricSummary,
    MetricType,
    PatientCreate,
    PatientResponse,
    PatientStatusUpdate,
    ReminderCreate,
    ReminderGroup,
    ReminderLabel,
    ReminderPriority,
    ReminderResponse,
    ResourceCreate,
    ResourceResponse,
    ResourceType,
    UserCreate,
    UserResponse,
    VitalSignCreate,
    VitalSignResponse,
    utcnow,
)
from .seed import seed_sample_data
from .storage import DashboardStore, DuplicateKeyError

# =====================================================
# Configuration & Middleware
# =====================================================
SERVICE_NAME = "dashboard-service"

logger = logging.getLogger(SERVICE_NAME)
logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Structured request logging with request ID and response time."""

    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start_ts = time.time()
        logger.info("req_id=%s start method=%s path=%s", req_id, request.method, request.url.path)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("req_id=%s unhandled error path=%s", req_id, request.url.path)
            raise

        duration_ms = int((time.time() - start_ts) * 1000)
        response.headers["X-Request-ID"] = req_id
        response.headers["X-Response-Time-ms"] = str(duration_ms)
        logger.info(
            "req_id=%s end status=%s path=%s duration_ms=%s",
            req_id,
            response.status_code,
            request.url.path,
            duration_ms,
        )
        return response


# Lifespan (startup/shutdown hooks)
@asynccontextmanager
async def lifespan(app: FastAPI):
    store: DashboardStore = app.state.store
    try:
        init_db(store.engine)
        logger.info("Database initialized successfully.")
    except SQLAlchemyError as e:
        logger.error("Database initialization failed: %s", e)
        raise

    if app.state.config.SEED_SAMPLE_DATA:
        seed_sample_data(store)
    yield
    close_db_connection(store.engine)
    logger.info("Database connections closed.")


# =====================================================
# Dependencies
# =====================================================


def get_store(request: Request) -> DashboardStore:
    return request.app.state.store


def get_cache(request: Request) -> VitalsCache:
    return request.app.state.vitals_cache


def get_reply_policy(request: Request) -> ReplyPolicy:
    return request.app.state.reply_policy


router = APIRouter(prefix="/api")


# =====================================================
# Users
# =====================================================


@router.get("/users/me", response_model=UserResponse)
def read_current_user(request: Request, store: DashboardStore = Depends(get_store)):
    """
    The logged-in nurse. There is no session handling yet, so this is the
    configured CURRENT_USERNAME.
    """
    user = store.get_user_by_username(request.app.state.config.CURRENT_USERNAME)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return UserResponse.model_validate(user)


@router.get("/users", response_model=List[UserResponse])
def list_users(store: DashboardStore = Depends(get_store)):
    return store.list_users()


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(payload: UserCreate, store: DashboardStore = Depends(get_store)):
    try:
        user = store.create_user(payload)
    except DuplicateKeyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: int, store: DashboardStore = Depends(get_store)):
    user = store.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


# =====================================================
# Patients
# =====================================================


@router.get("/patients", response_model=List[PatientResponse])
def list_patients(
    search: Optional[str] = None,
    status: Optional[str] = None,
    sort: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    store: DashboardStore = Depends(get_store),
):
    """All patients in insertion order, optionally filtered and sorted by name."""
    patients = rules.filter_patients(store.list_patients(), search=search, status=status)
    if sort:
        patients = rules.sort_patients(patients, descending=sort == "desc")
    return patients


@router.get("/patients/{patient_id}", response_model=PatientResponse)
def get_patient(patient_id: int, store: DashboardStore = Depends(get_store)):
    patient = store.get_patient(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


@router.post("/patients", response_model=PatientResponse, status_code=201)
def create_patient(payload: PatientCreate, store: DashboardStore = Depends(get_store)):
    try:
        return store.create_patient(payload)
    except DuplicateKeyError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch("/patients/{patient_id}/status", response_model=PatientResponse)
def update_patient_status(
    patient_id: int, payload: PatientStatusUpdate, store: DashboardStore = Depends(get_store)
):
    patient = store.update_patient_status(patient_id, payload.status)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


# =====================================================
# Vital Signs
# =====================================================


@router.get("/patients/{patient_id}/vital-signs", response_model=List[VitalSignResponse])
def list_vital_signs(
    patient_id: int,
    limit: int = Query(10, ge=1),
    store: DashboardStore = Depends(get_store),
):
    """Newest readings first."""
    return store.list_vital_signs(patient_id, limit=limit)


@router.get("/patients/{patient_id}/vital-signs/latest", response_model=VitalSignResponse)
def get_latest_vital_sign(
    patient_id: int,
    store: DashboardStore = Depends(get_store),
    cache: VitalsCache = Depends(get_cache),
):
    """
    Most recent reading for the monitoring panel.
    1) Try Redis cache
    2) Fallback to DB and refresh the cache
    """
    cached = cache.get_latest(patient_id)
    if cached:
        return cached

    vital = store.get_latest_vital_sign(patient_id)
    if not vital:
        raise HTTPException(status_code=404, detail="No vital signs found for patient")
    cache.store_latest(vital, publish=False)
    return vital


@router.post("/vital-signs", response_model=VitalSignResponse, status_code=201)
def create_vital_sign(
    payload: VitalSignCreate,
    store: DashboardStore = Depends(get_store),
    cache: VitalsCache = Depends(get_cache),
):
    vital = store.create_vital_sign(payload)

    # Only replace the cached snapshot if this really is the newest reading
    latest = store.get_latest_vital_sign(vital.patient_id)
    if latest is not None and latest.id == vital.id:
        cache.store_latest(vital)
    return vital


# =====================================================
# Reminders
# =====================================================


@router.get("/reminders", response_model=List[ReminderResponse])
def list_reminders(
    patient_id: Optional[int] = Query(None, alias="patientId"),
    upcoming: bool = False,
    limit: Optional[int] = Query(None, ge=1),
    completion: Completion = Completion.ALL,
    priority: Optional[ReminderPriority] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    store: DashboardStore = Depends(get_store),
):
    """
    upcoming=true: incomplete reminders due from now on (limit defaults to 5).
    patientId: that patient's reminders by due time.
    Otherwise every reminder. The remaining params narrow the result further.
    """
    if upcoming:
        reminders = store.list_upcoming_reminders(limit=limit or 5)
    elif patient_id is not None:
        reminders = store.list_reminders(patient_id)
    else:
        reminders = store.list_all_reminders()

    return rules.filter_reminders(
        reminders,
        completion=completion,
        priority=priority.value if priority else None,
        reminder_type=type,
        search=search,
    )


@router.get("/reminders/grouped", response_model=List[ReminderGroup])
def list_reminders_by_day(
    completion: Completion = Completion.ALL,
    priority: Optional[ReminderPriority] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    store: DashboardStore = Depends(get_store),
):
    """Reminders bucketed as Today, Tomorrow, then other dates."""
    reminders = rules.filter_reminders(
        store.list_all_reminders(),
        completion=completion,
        priority=priority.value if priority else None,
        reminder_type=type,
        search=search,
    )
    grouped = rules.group_reminders_by_day(reminders, utcnow())
    return [
        ReminderGroup(
            label=label, reminders=[ReminderResponse.model_validate(r) for r in items]
        )
        for label, items in grouped.items()
    ]


@router.get("/reminders/{reminder_id}", response_model=ReminderResponse)
def get_reminder(reminder_id: int, store: DashboardStore = Depends(get_store)):
    reminder = store.get_reminder(reminder_id)
    if not reminder:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return reminder


@router.get("/reminders/{reminder_id}/label", response_model=ReminderLabel)
def get_reminder_label(reminder_id: int, store: DashboardStore = Depends(get_store)):
    reminder = store.get_reminder(reminder_id)
    if not reminder:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return rules.urgency_label(reminder.due_time, utcnow())


@router.post("/reminders", response_model=ReminderResponse, status_code=201)
def create_reminder(payload: ReminderCreate, store: DashboardStore = Depends(get_store)):
    return store.create_reminder(payload)


@router.patch("/reminders/{reminder_id}/complete", response_model=ReminderResponse)
def complete_reminder(reminder_id: int, store: DashboardStore = Depends(get_store)):
    """Idempotent: completing an already completed reminder returns it unchanged."""
    reminder = store.complete_reminder(reminder_id)
    if not reminder:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return reminder


# =====================================================
# Messages (Virtual Assistant)
# =====================================================


def send_auto_reply(
    store: DashboardStore, trigger: Message, policy: ReplyPolicy, offset: timedelta
) -> None:
    """
    Background task: persist the assistant's answer to `trigger`.
    The user's message is already stored, so a failure here is only logged.
    """
    reply = build_auto_reply(trigger, policy, offset)
    if reply is None:
        return
    try:
        store.create_message(reply)
    except SQLAlchemyError:
        logger.exception("Failed to store assistant reply to message %s", trigger.id)


@router.get("/messages", response_model=List[MessageResponse])
def list_messages(
    limit: int = Query(20, ge=1),
    store: DashboardStore = Depends(get_store),
):
    return store.list_messages(limit=limit)


@router.post("/messages", response_model=MessageResponse, status_code=201)
def create_message(
    payload: MessageCreate,
    background_tasks: BackgroundTasks,
    request: Request,
    store: DashboardStore = Depends(get_store),
    policy: ReplyPolicy = Depends(get_reply_policy),
):
    """
    Stores the message and, for human messages, schedules exactly one
    assistant reply. The response does not wait for the reply.
    """
    message = store.create_message(payload)
    if not message.is_bot:
        background_tasks.add_task(
            send_auto_reply, store, message, policy, request.app.state.reply_offset
        )
    return message


# =====================================================
# Education Resources
# =====================================================


@router.get("/resources", response_model=List[ResourceResponse])
def list_resources(
    search: Optional[str] = None,
    type: Optional[ResourceType] = None,
    store: DashboardStore = Depends(get_store),
):
    return rules.filter_resources(
        store.list_resources(),
        search=search,
        resource_type=type.value if type else None,
    )


@router.get("/resources/{resource_id}", response_model=ResourceResponse)
def get_resource(resource_id: int, store: DashboardStore = Depends(get_store)):
    resource = store.get_resource(resource_id)
    if not resource:
        raise HTTPException(status_code=404, detail="Resource not found")
    return resource


@router.post("/resources", response_model=ResourceResponse, status_code=201)
def create_resource(payload: ResourceCreate, store: DashboardStore = Depends(get_store)):
    return store.create_resource(payload)


# =====================================================
# Health Metrics
# =====================================================


def _require_metric_type(metric_type: Optional[MetricType]) -> str:
    if metric_type is None:
        raise HTTPException(status_code=400, detail="Metric type is required")
    return metric_type.value


@router.get("/health-metrics", response_model=List[HealthMetricResponse])
def list_health_metrics(
    type: Optional[MetricType] = None,
    days: int = Query(7, ge=0),
    store: DashboardStore = Depends(get_store),
):
    """Readings of one metric over the last `days` days, oldest first."""
    return store.list_health_metrics(_require_metric_type(type), days=days)


@router.get("/health-metrics/summary", response_model=MetricSummary)
def summarize_health_metrics(
    type: Optional[MetricType] = None,
    days: int = Query(7, ge=0),
    store: DashboardStore = Depends(get_store),
):
    metric_type = _require_metric_type(type)
    return rules.metric_summary(metric_type, store.list_health_metrics(metric_type, days=days))


@router.post("/health-metrics", response_model=HealthMetricResponse, status_code=201)
def create_health_metric(payload: HealthMetricCreate, store: DashboardStore = Depends(get_store)):
    return store.create_health_metric(payload)


# =====================================================
# Dashboard
# =====================================================


@router.get("/dashboard/stats", response_model=DashboardStats)
def get_dashboard_stats(store: DashboardStore = Depends(get_store)):
    return rules.dashboard_stats(
        total_patients=store.count_patients(),
        upcoming=store.list_upcoming_reminders(limit=None),
        messages=store.list_messages(limit=None),
        now=utcnow(),
    )


# =====================================================
# Health Check
# =====================================================

health_router = APIRouter()


@health_router.get("/health", response_model=HealthCheckResponse)
def health(request: Request):
    """
    Health check endpoint to monitor service and its dependencies.
    1. Checks the database connection.
    2. Checks Redis, when caching is enabled.
    """
    dependencies = {}
    store: DashboardStore = request.app.state.store
    cache: VitalsCache = request.app.state.vitals_cache

    # 1. Database
    start = time.time()
    try:
        store.ping()
        dependencies["database"] = Dependency(
            status="healthy", response_time_ms=int((time.time() - start) * 1000)
        )
    except SQLAlchemyError as e:
        logger.error("Health check failed for database: %s", e)
        dependencies["database"] = Dependency(status="unhealthy", error=str(e))

    # 2. Redis
    if cache.enabled:
        start = time.time()
        try:
            if cache.ping():
                dependencies["redis"] = Dependency(
                    status="healthy", response_time_ms=int((time.time() - start) * 1000)
                )
            else:
                dependencies["redis"] = Dependency(status="unhealthy", error="Ping failed")
        except RedisError as e:
            logger.error("Health check failed for Redis: %s", e)
            dependencies["redis"] = Dependency(status="unhealthy", error=str(e))

    # Aggregate status
    overall_status = (
        "healthy" if all(d.status == "healthy" for d in dependencies.values()) else "unhealthy"
    )
    response = HealthCheckResponse(
        service=SERVICE_NAME, status=overall_status, dependencies=dependencies
    )
    if overall_status == "unhealthy":
        raise HTTPException(status_code=503, detail=response.model_dump())
    return response


# =====================================================
# App Factory
# =====================================================

_DEFAULT = object()


def create_app(
    config=Config,
    store: Optional[DashboardStore] = None,
    redis_client=_DEFAULT,
) -> FastAPI:
    """
    Builds the service. `store` and `redis_client` can be injected (tests);
    otherwise they come from DATABASE_URL and REDIS_* settings. Pass
    redis_client=None to run without the cache.
    """
    # Fail fast on a misconfigured chat policy or reply offset
    reply_policy = get_policy(config.CHAT_REPLY_POLICY)
    offset = reply_offset(config.CHAT_REPLY_OFFSET_SECONDS)

    if store is None:
        store = DashboardStore(create_db_engine(config.DATABASE_URL))
    if redis_client is _DEFAULT:
        redis_client = create_redis_client(config)

    app = FastAPI(title="Dashboard Service", lifespan=lifespan, root_path=config.ROOT_PATH)
    app.state.config = config
    app.state.store = store
    app.state.vitals_cache = VitalsCache(redis_client, ttl_seconds=config.CACHE_TTL_SECONDS)
    app.state.reply_policy = reply_policy
    app.state.reply_offset = offset

    app.add_middleware(LoggingMiddleware)
    app.include_router(health_router)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
