"""Derivation rules behind the dashboard views.

Everything here is a pure function over already-loaded rows (SQLModel tables
or anything with the same attributes). Callers pass `now` explicitly so the
results are deterministic under test. Times are compared in UTC and naive
values are read as UTC.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .models.models import HealthMetric, Message, Patient, Reminder, Resource
from .models.schemas import (
    Completion,
    DashboardStats,
    MetricSummary,
    ReminderLabel,
    Urgency,
    to_utc,
)

TODAY = "Today"
TOMORROW = "Tomorrow"


# =====================================================
# Formatting
# =====================================================


def format_clock_time(value: datetime) -> str:
    """12-hour clock without a leading zero, e.g. "6:00 PM"."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def format_calendar_date(value: datetime) -> str:
    """e.g. "Oct 7, 2026"."""
    return f"{value:%b} {value.day}, {value.year}"


# =====================================================
# Reminder urgency
# =====================================================


def urgency_label(due_time: datetime, now: datetime) -> ReminderLabel:
    """
    Classifies how soon a reminder is due.

    - already due (or overdue): "Now"
    - under an hour: "In {minutes}m"
    - under a day: "In {hours}h"
    - otherwise the clock time of `due_time`

    Both cut-offs are strict, so exactly 60 minutes reads "In 1h" and exactly
    24 hours falls through to the clock time.
    """
    due_time = to_utc(due_time)
    remaining = due_time - to_utc(now)
    if remaining <= timedelta(0):
        return ReminderLabel(text="Now", urgency=Urgency.NOW)

    minutes = int(remaining.total_seconds() // 60)
    hours = minutes // 60
    if minutes < 60:
        return ReminderLabel(text=f"In {minutes}m", urgency=Urgency.SOON)
    if hours < 24:
        return ReminderLabel(text=f"In {hours}h", urgency=Urgency.SOON)
    return ReminderLabel(text=format_clock_time(due_time), urgency=Urgency.LATER)


# =====================================================
# Patients
# =====================================================


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle in (haystack or "").lower()


def filter_patients(
    patients: Iterable[Patient], search: Optional[str] = None, status: Optional[str] = None
) -> List[Patient]:
    """Search over name, display code and condition, AND-ed with an exact status match."""
    query = search.lower() if search else None
    matched = []
    for patient in patients:
        if query and not (
            _contains(patient.name, query)
            or _contains(patient.patient_id, query)
            or _contains(patient.condition, query)
        ):
            continue
        if status and patient.status != status:
            continue
        matched.append(patient)
    return matched


def sort_patients(patients: Iterable[Patient], descending: bool = False) -> List[Patient]:
    return sorted(patients, key=lambda p: p.name.lower(), reverse=descending)


# =====================================================
# Reminders
# =====================================================


def filter_reminders(
    reminders: Iterable[Reminder],
    completion: str = Completion.ALL.value,
    priority: Optional[str] = None,
    reminder_type: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Reminder]:
    """Independent predicates combined with AND. A missing filter matches everything."""
    query = search.lower() if search else None
    matched = []
    for reminder in reminders:
        if completion == Completion.ACTIVE and reminder.completed:
            continue
        if completion == Completion.COMPLETED and not reminder.completed:
            continue
        if priority and reminder.priority != priority:
            continue
        if reminder_type and reminder.type != reminder_type:
            continue
        if query and not (_contains(reminder.title, query) or _contains(reminder.description, query)):
            continue
        matched.append(reminder)
    return matched


def day_label(due_time: datetime, now: datetime) -> str:
    due_time = to_utc(due_time)
    today = to_utc(now).date()
    if due_time.date() == today:
        return TODAY
    if due_time.date() == today + timedelta(days=1):
        return TOMORROW
    return format_calendar_date(due_time)


def group_reminders_by_day(
    reminders: Iterable[Reminder], now: datetime
) -> Dict[str, List[Reminder]]:
    """
    Buckets reminders by due day. "Today" comes first, "Tomorrow" second and
    every other date keeps the order in which it was first seen. Reminders
    keep their input order inside a bucket.
    """
    grouped: Dict[str, List[Reminder]] = {}
    for reminder in reminders:
        grouped.setdefault(day_label(reminder.due_time, now), []).append(reminder)

    rank = {TODAY: 0, TOMORROW: 1}
    # sorted() is stable, so other dates tie at 2 and stay in first-seen order
    ordered = sorted(grouped, key=lambda label: rank.get(label, 2))
    return {label: grouped[label] for label in ordered}


# =====================================================
# Education resources
# =====================================================


def filter_resources(
    resources: Iterable[Resource],
    search: Optional[str] = None,
    resource_type: Optional[str] = None,
) -> List[Resource]:
    query = search.lower() if search else None
    matched = []
    for resource in resources:
        if query and not (_contains(resource.title, query) or _contains(resource.description, query)):
            continue
        if resource_type and resource.resource_type != resource_type:
            continue
        matched.append(resource)
    return matched


def group_resources_by_type(resources: Iterable[Resource]) -> Dict[str, List[Resource]]:
    grouped: Dict[str, List[Resource]] = {}
    for resource in resources:
        grouped.setdefault(resource.resource_type, []).append(resource)
    return grouped


# =====================================================
# Dashboard widgets
# =====================================================


def dashboard_stats(
    total_patients: int,
    upcoming: Sequence[Reminder],
    messages: Sequence[Message],
    now: datetime,
) -> DashboardStats:
    today = to_utc(now).date()
    return DashboardStats(
        total_patients=total_patients,
        upcoming_reminders=len(upcoming),
        reminders_due_today=sum(1 for r in upcoming if to_utc(r.due_time).date() == today),
        total_messages=len(messages),
        user_messages=sum(1 for m in messages if not m.is_bot),
    )


def metric_summary(metric_type: str, metrics: Sequence[HealthMetric]) -> MetricSummary:
    """Average change over the window (missing change counts as 0) and the latest value."""
    if not metrics:
        return MetricSummary(metric_type=metric_type, count=0, latest_value=None, average_change=0.0)
    total_change = sum(m.change or 0.0 for m in metrics)
    return MetricSummary(
        metric_type=metric_type,
        count=len(metrics),
        latest_value=metrics[-1].value,
        average_change=total_change / len(metrics),
    )
