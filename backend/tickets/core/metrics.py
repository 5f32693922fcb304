"""
Metrics instrumentation for observability.
Prometheus-compatible metrics; the host application decides how to expose them.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST

# Reservation metrics
reservation_attempts = Counter(
    'ticket_reservation_attempts_total',
    'Total ticket reservation attempts',
    ['status']  # success, conflict, insufficient, error
)

reservation_latency = Histogram(
    'ticket_reservation_latency_seconds',
    'Ticket reservation latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

tickets_released = Counter(
    'tickets_released_total',
    'Tickets returned to inventory',
    ['reason']  # cancelled, expired, compensation
)

# Admission control metrics
admission_requests = Counter(
    'ticket_admission_requests_total',
    'Total admission control requests',
    ['result']  # admitted, rejected
)

# Database metrics
db_retries = Counter(
    'ticket_counter_retry_attempts_total',
    'Counter update retries due to version conflicts'
)

redis_connection_errors = Counter(
    'ticket_redis_connection_errors_total',
    'Redis connection errors'
)

redis_circuit_breaker_open = Gauge(
    'ticket_redis_circuit_breaker_open',
    'Redis circuit breaker state (1=open, 0=closed)'
)

# Pricing metrics
pricing_failures = Counter(
    'basket_pricing_failures_total',
    'Basket pricing failures',
    ['reason']  # error code
)

discount_applications = Counter(
    'discount_code_applications_total',
    'Discount codes applied to priced baskets',
    ['code']
)


def metrics_payload() -> tuple[bytes, str]:
    """Body and content type for a Prometheus scrape endpoint."""
    return generate_latest(), CONTENT_TYPE_LATEST


# Convenience functions for instrumentation
def record_reservation_attempt(status: str):
    """Record reservation attempt. Status: success, conflict, insufficient, error"""
    reservation_attempts.labels(status=status).inc()

def record_release(reason: str, number: int = 1):
    tickets_released.labels(reason=reason).inc(number)

def record_admission(admitted: bool):
    """Record admission control decision."""
    result = "admitted" if admitted else "rejected"
    admission_requests.labels(result=result).inc()

def record_pricing_failure(reason: str):
    pricing_failures.labels(reason=reason).inc()
