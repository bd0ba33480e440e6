from datetime import datetime, timedelta, timezone

from dashboard_service import rules
from dashboard_service.models.models import HealthMetric, Message, Patient, Reminder, Resource

NOW = datetime(2026, 10, 7, 9, 0, tzinfo=timezone.utc)


def make_reminder(**overrides):
    fields = dict(
        title="Medication Check",
        description="Antibiotic round",
        patient_id=1,
        due_time=NOW,
        completed=False,
        priority="medium",
        type="medication",
    )
    fields.update(overrides)
    return Reminder(**fields)


# --- Urgency labels ---


def test_due_or_overdue_is_now():
    for due in (NOW, NOW - timedelta(seconds=1), NOW - timedelta(days=3)):
        label = rules.urgency_label(due, NOW)
        assert label.text == "Now"
        assert label.urgency == "now"


def test_under_an_hour_counts_whole_minutes():
    assert rules.urgency_label(NOW + timedelta(minutes=30, seconds=59), NOW).text == "In 30m"
    assert rules.urgency_label(NOW + timedelta(minutes=59, seconds=59), NOW).text == "In 59m"
    assert rules.urgency_label(NOW + timedelta(seconds=20), NOW).text == "In 0m"
    assert rules.urgency_label(NOW + timedelta(minutes=5), NOW).urgency == "soon"


def test_exactly_one_hour_switches_to_hours():
    label = rules.urgency_label(NOW + timedelta(minutes=60), NOW)
    assert label.text == "In 1h"
    assert label.urgency == "soon"


def test_under_a_day_counts_whole_hours():
    assert rules.urgency_label(NOW + timedelta(hours=23, minutes=59), NOW).text == "In 23h"
    assert rules.urgency_label(NOW + timedelta(hours=2, minutes=30), NOW).text == "In 2h"


def test_a_day_or_more_shows_clock_time():
    label = rules.urgency_label(NOW + timedelta(hours=24), NOW)
    assert label.text == "9:00 AM"
    assert label.urgency == "later"

    evening = datetime(2026, 10, 9, 18, 0, tzinfo=timezone.utc)
    assert rules.urgency_label(evening, NOW).text == "6:00 PM"


def test_clock_time_around_midnight_and_noon():
    assert rules.format_clock_time(datetime(2026, 1, 1, 0, 5, tzinfo=timezone.utc)) == "12:05 AM"
    assert rules.format_clock_time(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)) == "12:00 PM"


# --- Patients ---


def test_patient_search_and_status_must_both_match():
    monitored = Patient(patient_id="P-1", name="Maria Garcia", condition="Hypertension", status="monitor")
    stable = Patient(patient_id="P-2", name="Maria Garcia", condition="Hypertension", status="stable")

    result = rules.filter_patients([monitored, stable], search="garcia", status="monitor")

    assert result == [monitored]


def test_patient_search_covers_code_and_condition():
    wilson = Patient(patient_id="P-2458", name="James Wilson", condition="Type 2 Diabetes", status="stable")
    johnson = Patient(patient_id="P-1192", name="Robert Johnson", condition="COPD", status="attention")

    assert rules.filter_patients([wilson, johnson], search="p-1192") == [johnson]
    assert rules.filter_patients([wilson, johnson], search="DIABETES") == [wilson]
    assert rules.filter_patients([wilson, johnson]) == [wilson, johnson]


def test_sort_patients_by_name():
    names = ["robert Johnson", "Maria Garcia", "James Wilson"]
    patients = [Patient(patient_id=str(i), name=n, condition="x") for i, n in enumerate(names)]

    assert [p.name for p in rules.sort_patients(patients)] == [
        "James Wilson",
        "Maria Garcia",
        "robert Johnson",
    ]
    assert [p.name for p in rules.sort_patients(patients, descending=True)][0] == "robert Johnson"


# --- Reminders ---


def test_filter_reminders_combines_predicates():
    done = make_reminder(title="Done", completed=True)
    urgent = make_reminder(title="Urgent meds", priority="high")
    meal = make_reminder(title="Meal Assistance", type="nutrition", description="Dinner help")

    everything = [done, urgent, meal]
    assert rules.filter_reminders(everything) == everything
    assert rules.filter_reminders(everything, completion="completed") == [done]
    assert rules.filter_reminders(everything, completion="active") == [urgent, meal]
    assert rules.filter_reminders(everything, priority="high") == [urgent]
    assert rules.filter_reminders(everything, reminder_type="nutrition") == [meal]
    assert rules.filter_reminders(everything, search="dinner") == [meal]
    assert rules.filter_reminders(everything, completion="active", priority="low") == []


def test_group_reminders_by_day_orders_today_then_tomorrow():
    later = make_reminder(title="a", due_time=datetime(2026, 10, 10, 8, 0, tzinfo=timezone.utc))
    tomorrow = make_reminder(title="b", due_time=datetime(2026, 10, 8, 8, 0, tzinfo=timezone.utc))
    today = make_reminder(title="c", due_time=datetime(2026, 10, 7, 18, 0, tzinfo=timezone.utc))
    other = make_reminder(title="d", due_time=datetime(2026, 10, 9, 8, 0, tzinfo=timezone.utc))
    later_again = make_reminder(title="e", due_time=datetime(2026, 10, 10, 7, 0, tzinfo=timezone.utc))

    grouped = rules.group_reminders_by_day([later, tomorrow, today, other, later_again], NOW)

    assert list(grouped) == ["Today", "Tomorrow", "Oct 10, 2026", "Oct 9, 2026"]
    assert grouped["Oct 10, 2026"] == [later, later_again]
    assert grouped["Today"] == [today]


# --- Resources ---


def test_filter_and_group_resources():
    guide = Resource(title="Diabetes Guide", description="Type 1 & 2", resource_type="pdf", url="/a", icon="file-pdf")
    video = Resource(title="BP Videos", description="Hypertension care", resource_type="video", url="/b", icon="video")
    copd = Resource(title="COPD Home Care", description="Printable", resource_type="pdf", url="/c", icon="file-alt")

    assert rules.filter_resources([guide, video, copd], search="hypertension") == [video]
    assert rules.filter_resources([guide, video, copd], resource_type="pdf") == [guide, copd]

    grouped = rules.group_resources_by_type([guide, video, copd])
    assert list(grouped) == ["pdf", "video"]
    assert grouped["pdf"] == [guide, copd]


# --- Dashboard widgets ---


def test_dashboard_stats_counts():
    upcoming = [
        make_reminder(due_time=NOW + timedelta(hours=1)),
        make_reminder(due_time=NOW + timedelta(days=1)),
    ]
    messages = [
        Message(sender_id=0, content="Hello", timestamp=NOW, is_bot=True),
        Message(sender_id=1, content="Hi", timestamp=NOW, is_bot=False),
    ]

    stats = rules.dashboard_stats(total_patients=3, upcoming=upcoming, messages=messages, now=NOW)

    assert stats.total_patients == 3
    assert stats.upcoming_reminders == 2
    assert stats.reminders_due_today == 1
    assert stats.total_messages == 2
    assert stats.user_messages == 1


def test_metric_summary():
    metrics = [
        HealthMetric(metric_type="glucose", date=NOW - timedelta(days=2), value=110, change=None),
        HealthMetric(metric_type="glucose", date=NOW - timedelta(days=1), value=112, change=2),
        HealthMetric(metric_type="glucose", date=NOW, value=111, change=-1),
    ]

    summary = rules.metric_summary("glucose", metrics)

    assert summary.count == 3
    assert summary.latest_value == 111
    assert summary.average_change == 1 / 3


def test_metric_summary_empty():
    summary = rules.metric_summary("glucose", [])
    assert summary.count == 0
    assert summary.latest_value is None
    assert summary.average_change == 0.0


def test_naive_times_are_read_as_utc():
    assert rules.urgency_label(datetime(2026, 10, 7, 9, 30), NOW).text == "In 30m"
    assert rules.day_label(datetime(2026, 10, 8, 1, 0), NOW) == "Tomorrow"
