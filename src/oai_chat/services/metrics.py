"""Round-trip counters."""

from prometheus_client import CollectorRegistry, Counter, generate_latest

# Registry for isolated metric collection
CUSTOM_REGISTRY = CollectorRegistry()

ROUND_TRIPS = Counter(
    "chat_round_trips_total", "Total chat round trips attempted", registry=CUSTOM_REGISTRY
)
ROUND_TRIP_ERRORS = Counter(
    "chat_round_trip_errors_total", "Total chat round trips that failed", registry=CUSTOM_REGISTRY
)
PROCESSING_TIME = Counter(
    "chat_processing_time_seconds", "Total time spent waiting on the service", registry=CUSTOM_REGISTRY
)


def render_metrics() -> bytes:
    """Return the counters in the Prometheus text format."""
    return generate_latest(CUSTOM_REGISTRY)
