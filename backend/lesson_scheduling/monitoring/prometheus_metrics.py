"""
Prometheus metrics for the lesson scheduling core.

Service operation timings come from the @measure_operation decorator;
domain counters track detected conflicts and generated occurrences.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "lesson_scheduling_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "lesson_scheduling_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "lesson_scheduling_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

scheduling_conflicts_total = Counter(
    "lesson_scheduling_conflicts_total",
    "Scheduling conflicts detected, by conflict type",
    ["conflict_type"],
    registry=REGISTRY,
)

pattern_occurrences_total = Counter(
    "lesson_scheduling_pattern_occurrences_total",
    "Recurring pattern occurrences processed, by outcome",
    ["outcome"],  # created | existing | exception | skipped_conflict
    registry=REGISTRY,
)

booking_lock_total = Counter(
    "lesson_scheduling_booking_lock_total",
    "Resource lock operations",
    ["action", "outcome"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Static facade used by services."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'ConflictChecker')
            operation: Operation/method name (e.g., 'check_scheduling_conflicts')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_conflict(conflict_type: str) -> None:
        scheduling_conflicts_total.labels(conflict_type=conflict_type).inc()

    @staticmethod
    def record_pattern_occurrence(outcome: str) -> None:
        pattern_occurrences_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_booking_lock(action: str, outcome: str) -> None:
        booking_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)


prometheus_metrics = PrometheusMetrics()
