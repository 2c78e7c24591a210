"""Domain counters exported alongside the HTTP metrics."""

from prometheus_client import Counter

appointments_booked_total = Counter(
    "appointments_booked_total",
    "Appointments successfully booked",
)

reminders_enqueued_total = Counter(
    "reminders_enqueued_total",
    "Reminder jobs enqueued by the sweep",
    ["kind"],
)

notifications_dispatched_total = Counter(
    "notifications_dispatched_total",
    "Notification jobs processed by the dispatcher",
    ["kind", "outcome"],
)
