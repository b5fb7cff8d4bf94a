from __future__ import annotations

from prometheus_client import Counter, Histogram

STORECHECK_SCENARIO_TOTAL = Counter(
    "storecheck_scenario_total",
    "Generated scenarios executed against a store",
    ["store", "kind", "status"],
)

STORECHECK_SCENARIO_LATENCY_SECONDS = Histogram(
    "storecheck_scenario_latency_seconds",
    "Wall-clock duration of a generated scenario, setup and teardown included",
    ["store", "kind"],
)

STORECHECK_OPERATIONS_SKIPPED_TOTAL = Counter(
    "storecheck_operations_skipped_total",
    "Store operations left out of generation",
    ["store", "reason"],
)
