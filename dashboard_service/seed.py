"""Sample data so a fresh dashboard has something to show."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from .models.schemas import (
    HealthMetricCreate,
    MessageCreate,
    MetricType,
    PatientCreate,
    ReminderCreate,
    ResourceCreate,
    UserCreate,
    VitalSignCreate,
    utcnow,
)
from .storage import DashboardStore

logger = logging.getLogger("dashboard-service")


def seed_sample_data(store: DashboardStore, now: Optional[datetime] = None) -> bool:
    """
    Loads the demo ward. Skipped when patients already exist so restarts
    don't duplicate rows. Returns True if anything was written.
    """
    if store.count_patients() > 0:
        logger.info("Sample data already present, skipping seed.")
        return False

    now = now or utcnow()

    store.create_user(
        UserCreate(
            username="sarah.chen",
            password="password123",
            name="Dr. Sarah Chen",
            email="sarah.chen@medicalpro.com",
            role="head_nurse",
            avatar="",
        )
    )

    # Patients
    wilson = store.create_patient(
        PatientCreate(
            patient_id="P-2458",
            name="James Wilson",
            avatar="",
            condition="Type 2 Diabetes",
            status="stable",
            notes="Patient is responding well to treatment",
        )
    )
    garcia = store.create_patient(
        PatientCreate(
            patient_id="P-3721",
            name="Maria Garcia",
            avatar="",
            condition="Hypertension",
            status="monitor",
            notes="Blood pressure has been fluctuating, requires close monitoring",
        )
    )
    johnson = store.create_patient(
        PatientCreate(
            patient_id="P-1192",
            name="Robert Johnson",
            avatar="",
            condition="COPD",
            status="attention",
            notes="Oxygen levels dropped below 92% last night, needs respiratory assessment",
        )
    )

    # Vital signs
    for patient, readings in (
        (wilson, (88, 128, 85, 36.7, 17, 98, 1)),
        (garcia, (76, 142, 92, 36.5, 16, 97, 2)),
        (johnson, (92, 132, 86, 37.1, 22, 91, 3)),
    ):
        hr, sys_bp, dia_bp, temp, rr, spo2, pain = readings
        store.create_vital_sign(
            VitalSignCreate(
                patient_id=patient.id,
                timestamp=now,
                heart_rate=hr,
                blood_pressure_systolic=sys_bp,
                blood_pressure_diastolic=dia_bp,
                temperature=temp,
                respiratory_rate=rr,
                oxygen_saturation=spo2,
                pain_level=pain,
            )
        )

    # Reminders
    store.create_reminder(
        ReminderCreate(
            title="Medication Check",
            description="Verify Robert Johnson's antibiotic adherence",
            patient_id=johnson.id,
            due_time=now,
            priority="high",
            type="medication",
        )
    )
    store.create_reminder(
        ReminderCreate(
            title="Blood Pressure Check",
            description="Maria Garcia needs BP monitoring",
            patient_id=garcia.id,
            due_time=now + timedelta(minutes=30),
            priority="medium",
            type="vital_check",
        )
    )
    store.create_reminder(
        ReminderCreate(
            title="Position Change",
            description="Assist James Wilson with position change",
            patient_id=wilson.id,
            due_time=now + timedelta(hours=2),
            priority="low",
            type="general_care",
        )
    )
    store.create_reminder(
        ReminderCreate(
            title="Meal Assistance",
            description="Help James Wilson with dinner",
            patient_id=wilson.id,
            due_time=now.replace(hour=18, minute=0, second=0, microsecond=0),
            priority="medium",
            type="nutrition",
        )
    )

    # Assistant conversation
    opened_at = now.replace(hour=10, minute=32, second=0, microsecond=0)
    store.create_message(
        MessageCreate(
            sender_id=0,
            content="Hello Dr. Chen! How can I assist you today?",
            timestamp=opened_at,
            is_bot=True,
        )
    )
    store.create_message(
        MessageCreate(
            sender_id=1,
            content="I need to check on Robert Johnson's oxygen levels for the past 24 hours.",
            timestamp=opened_at + timedelta(minutes=1),
            is_bot=False,
        )
    )
    store.create_message(
        MessageCreate(
            sender_id=0,
            content=(
                "Robert Johnson's oxygen levels in the last 24 hours have ranged between 91-94%. "
                "His lowest reading was at 2:15 AM (91%). Would you like me to schedule a "
                "respiratory assessment?"
            ),
            timestamp=opened_at + timedelta(minutes=2),
            is_bot=True,
        )
    )

    # Education resources
    for title, description, resource_type, url, icon in (
        (
            "Diabetes Management Guide",
            "For patients with Type 1 & 2 diabetes",
            "pdf",
            "/resources/diabetes-management.pdf",
            "file-pdf",
        ),
        (
            "Hypertension Care Video Series",
            "Educational videos on blood pressure management",
            "video",
            "/resources/hypertension-series",
            "video",
        ),
        (
            "COPD Home Care Instructions",
            "Printable guide for patients",
            "document",
            "/resources/copd-homecare.pdf",
            "file-alt",
        ),
    ):
        store.create_resource(
            ResourceCreate(
                title=title,
                description=description,
                resource_type=resource_type,
                url=url,
                icon=icon,
            )
        )

    # One week of health metrics per type
    one_week_ago = now - timedelta(days=7)
    metrics = []
    for i in range(7):
        date = one_week_ago + timedelta(days=i)
        metrics.append(
            HealthMetricCreate(
                metric_type=MetricType.BLOOD_PRESSURE,
                date=date,
                value=130 - i,
                change=0 if i == 0 else -1,
            )
        )
        metrics.append(
            HealthMetricCreate(
                metric_type=MetricType.GLUCOSE,
                date=date,
                value=110 + (i % 3),
                change=0 if i == 0 else (2 if i % 3 == 0 else -1),
            )
        )
        metrics.append(
            HealthMetricCreate(
                metric_type=MetricType.MEDICATION_ADHERENCE,
                date=date,
                value=85 + i,
                change=0 if i == 0 else 1,
            )
        )
    store.create_health_metrics(metrics)

    logger.info("Seeded sample dashboard data.")
    return True
