"""
Metrics definitions for PA Alerts.

This module defines Prometheus metrics for monitoring
the alert ingestion and zone resolution pipeline.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
alert_runs = Counter(
    "alert_runs_total",
    "Number of ingestion runs by outcome",
    ["outcome"]
)

alerts_fetched = Counter(
    "alerts_fetched_total",
    "Number of raw alerts received from the active-alerts feed"
)

alerts_hazard = Counter(
    "alerts_hazard_total",
    "Number of alerts that passed the warning/watch/advisory filter"
)

zone_fetches = Counter(
    "zone_fetches_total",
    "Zone geometry fetches by result",
    ["result"]
)

zone_cache_hits = Counter(
    "zone_cache_hits_total",
    "Zone geometry lookups served from the cache"
)

zone_fetch_cap_exhausted = Counter(
    "zone_fetch_cap_exhausted_total",
    "Zone lookups skipped because the per-run fetch cap was reached"
)

# 히스토그램 메트릭
run_seconds = Histogram(
    "alert_run_duration_seconds",
    "Wall-clock time of one ingestion run",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 45.0, 90.0]
)

zone_fetch_seconds = Histogram(
    "zone_fetch_duration_seconds",
    "Time spent fetching one zone record",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# 게이지 메트릭
alerts_rendered = Gauge(
    "alerts_rendered",
    "Number of alerts in the currently rendered layer"
)

geometry_cache_size = Gauge(
    "geometry_cache_size",
    "Number of zone entries in the geometry cache"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
