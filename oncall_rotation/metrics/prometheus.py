# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "oncall_requests_total",
    "Total HTTP requests to on-call rotation service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "oncall_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "oncall_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
NOTIFICATIONS_SENT = Counter(
    "oncall_notifications_sent_total",
    "Total notification sends attempted",
    ["channel", "status"],
)
NOTIFICATIONS_SKIPPED = Counter(
    "oncall_notifications_skipped_total",
    "Notifications skipped by the dispatch engine",
    ["channel", "reason"],
)
DISPATCH_RUNS = Counter(
    "oncall_dispatch_runs_total",
    "Dispatch engine runs",
    ["trigger", "dry_run"],
)
CRON_TICKS = Counter(
    "oncall_cron_ticks_total",
    "Timer ticks received, by classified weekday hint",
    ["cron_hint"],
)
SCHEDULE_SAVES = Counter(
    "oncall_schedule_saves_total",
    "Schedule saves",
    ["source"],
)
ENTRIES_ARCHIVED = Counter(
    "oncall_entries_archived_total",
    "Concluded entries written to history",
)
SCHEDULE_ENTRIES = Gauge(
    "oncall_schedule_entries",
    "Number of entries in the authoritative schedule",
)
