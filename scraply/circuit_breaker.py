from pybreaker import CircuitBreaker

# One breaker per upstream service so an outage in one does not trip the other
assistant_circuit_breaker = CircuitBreaker(
    fail_max=3,
    reset_timeout=60,
    name="assistant_service_breaker",
)

prediction_circuit_breaker = CircuitBreaker(
    fail_max=3,
    reset_timeout=60,
    # the call that trips the breaker still reports its own failure
    throw_new_error_on_trip=False,
    name="prediction_service_breaker",
)
