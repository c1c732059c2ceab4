"""Prometheus metrics for the race calendar harvester.

All custom metrics use the 'sportcal_' prefix to avoid conflicts with
other applications in a shared observability stack.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
APP_INFO = Info(
    "sportcal_app",
    "Sport calendar application info",
)
APP_INFO.info({"version": "1.0.0", "name": "sportcal"})

# Harvest metrics
HARVEST_DURATION_SECONDS = Histogram(
    "sportcal_harvest_duration_seconds",
    "Duration of a single source harvest in seconds",
    ["source"],
    buckets=[1, 2, 5, 10, 20, 40, 60, 120],
)

HARVEST_TOTAL = Counter(
    "sportcal_harvests_total",
    "Total number of source harvests by status",
    ["source", "status"],  # status: completed, empty, failed
)

HARVEST_EVENTS_FOUND = Gauge(
    "sportcal_harvest_events_found",
    "Number of upcoming events found in the last harvest",
    ["source"],
)

CANDIDATES_REJECTED = Counter(
    "sportcal_candidates_rejected_total",
    "Scraped candidates dropped before persistence",
    ["subject", "reason"],  # invalid_name, unparseable_date, past, duplicate
)

# Data quality
EVENTS_PURGED = Counter(
    "sportcal_events_purged_total",
    "Stored events removed by the purge routine",
    ["category"],
)

PERSISTENCE_ERRORS_TOTAL = Counter(
    "sportcal_persistence_errors_total",
    "Event store write failures by source",
    ["source"],
)

# Scheduler
SCHEDULER_LAST_RUN = Gauge(
    "sportcal_scheduler_last_run_timestamp",
    "Unix timestamp of last scheduled refresh run",
)
