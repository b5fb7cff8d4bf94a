from __future__ import annotations

from .registry import (
    STORECHECK_OPERATIONS_SKIPPED_TOTAL,
    STORECHECK_SCENARIO_LATENCY_SECONDS,
    STORECHECK_SCENARIO_TOTAL,
)


def observe_scenario(store: str, kind: str, status: str, latency_s: float) -> None:
    """
    Record the outcome of one scenario run.

    Args:
        store: Store class name
        kind: OperationKind value of the operation under test
        status: "pass", "fail" (contract violation) or "error" (anything else)
        latency_s: Duration in seconds
    """
    STORECHECK_SCENARIO_TOTAL.labels(store=store, kind=kind, status=status).inc()
    STORECHECK_SCENARIO_LATENCY_SECONDS.labels(store=store, kind=kind).observe(latency_s)


def observe_skipped_operation(store: str, reason: str) -> None:
    """Count an operation skipped during classification ("unmatched", "unknown_field", "configured")."""
    STORECHECK_OPERATIONS_SKIPPED_TOTAL.labels(store=store, reason=reason).inc()
