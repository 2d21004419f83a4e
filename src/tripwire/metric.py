import re

from prometheus_client import Counter

alive_event_counter = Counter(
    "tripwire_num_alive_events", "Total number of alive events", labelnames=["kind"]
)

notification_suppressed_counter = Counter(
    "tripwire_num_notifications_suppressed",
    "Number of checks failed events that did not produce a notification",
    labelnames=["reason"],
)

notification_posted_counter = Counter(
    "tripwire_num_notifications_posted", "Number of notifications shown"
)

api_call_count = Counter(
    "tripwire_num_api_calls",
    "Total number of GitHub API calls",
    labelnames=["endpoint"],
)

error_counter = Counter(
    "tripwire_error_counter", "Total number of errors", labelnames=["context"]
)


def _normalize_api_endpoint(url: str) -> str:
    path = url.split("?", 1)[0]
    if m := re.search(r"/commits/.+/(status|check-runs)$", path):
        return m.group(1)
    if re.search(r"/commits/[^/]+$", path):
        return "commit"
    if path.endswith("/pulls"):
        return "pulls"
    return "other"


def record_api_call(endpoint: str) -> None:
    api_call_count.labels(endpoint=_normalize_api_endpoint(endpoint)).inc()
