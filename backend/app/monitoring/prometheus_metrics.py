"""
Prometheus metrics module for Classbook.

Service timings come from the @measure_operation decorator; domain counters
are incremented by the booking, cancellation and attendance services.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "classbook_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

service_operation_duration_seconds = Histogram(
    "classbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "classbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "classbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

bookings_created_total = Counter(
    "classbook_bookings_created_total",
    "Bookings created",
    registry=REGISTRY,
)

cancellations_total = Counter(
    "classbook_cancellations_total",
    "Booking cancellations",
    ["actor_role", "refunded"],
    registry=REGISTRY,
)

calendar_failures_total = Counter(
    "classbook_calendar_failures_total",
    "Calendar service calls that failed after the booking transaction committed",
    ["operation"],
    registry=REGISTRY,
)

attendance_events_total = Counter(
    "classbook_attendance_events_total",
    "Attendance log entries recorded",
    ["action"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_http_request(method: str, endpoint: str, duration: float, status_code: int) -> None:
        labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}
        http_request_duration_seconds.labels(**labels).observe(duration)

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
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
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
    def inc_booking_created() -> None:
        bookings_created_total.inc()

    @staticmethod
    def inc_cancellation(actor_role: str, refunded: bool) -> None:
        cancellations_total.labels(actor_role=actor_role, refunded=str(refunded).lower()).inc()

    @staticmethod
    def inc_calendar_failure(operation: str) -> None:
        calendar_failures_total.labels(operation=operation).inc()

    @staticmethod
    def inc_attendance_event(action: str) -> None:
        attendance_events_total.labels(action=action).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Metrics data in Prometheus text exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


prometheus_metrics = PrometheusMetrics()
