"""Prometheus metrics for VanCal.

All custom metrics use the 'vancal_' prefix to avoid conflicts
with other applications in a shared observability stack.
"""

from prometheus_client import Counter, Histogram, Info

APP_INFO = Info("vancal_app", "VanCal application info")
APP_INFO.info({"version": "1.0.0", "name": "vancal"})

SCRAPE_TOTAL = Counter(
    "vancal_scrapes_total",
    "Venue scrapes by terminal status",
    ["venue_id", "status"],  # status: success, error, skipped
)

SCRAPE_DURATION_SECONDS = Histogram(
    "vancal_scrape_duration_seconds",
    "Duration of a venue scrape including retries",
    ["venue_id"],
    buckets=[1, 5, 10, 30, 60, 120, 300, 600],
)

SCRAPE_ATTEMPT_FAILURES = Counter(
    "vancal_scrape_attempt_failures_total",
    "Failed fetch/extract attempts by venue and exception type",
    ["venue_id", "error_type"],
)

EVENTS_FOUND = Counter(
    "vancal_events_found_total",
    "Raw events returned by venue plugins",
    ["venue_id"],
)

DATE_PARSE_FAILURES = Counter(
    "vancal_date_parse_failures_total",
    "Raw events dropped because their date could not be parsed",
    ["venue_id"],
)

EVENTS_INSERTED = Counter(
    "vancal_events_inserted_total",
    "Normalized events written to the database",
    ["venue_id"],
)
