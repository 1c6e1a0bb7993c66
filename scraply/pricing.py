import logging

import requests
from pybreaker import CircuitBreakerError

from . import config, schemas
from .circuit_breaker import prediction_circuit_breaker

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timed out. Please try again."
NETWORK_MESSAGE = "Network error. Please check your connection and try again."
UNREACHABLE_MESSAGE = "Failed to connect to prediction service. Please try again later."
INVALID_RESPONSE_MESSAGE = "Invalid prediction response"
CIRCUIT_OPEN_MESSAGE = "Prediction service temporarily unavailable. Please try again later."


class UpstreamError(Exception):
    """The price-prediction service could not produce a price."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def build_payload(request: schemas.PredictionRequest) -> dict:
    # Field names expected by the prediction model service
    return {
        "Category": request.category,
        "Brand": request.brand,
        "Condition": request.condition,
        "BodyType": request.body_type,
        "ActualPrice": request.original_price,
        "RecyclePossible": request.recycle_possible,
        "ReusePossible": request.reuse_possible,
        "YearsUsed": request.age_years,
        "Running": request.running,
    }


def _upstream_error(response: requests.Response) -> UpstreamError:
    try:
        detail = response.json().get("error")
    except (ValueError, AttributeError):
        detail = None
    return UpstreamError(502, f"Prediction failed: {detail or 'Unknown error'}")


@prediction_circuit_breaker
def _post_predict(payload: dict) -> requests.Response:
    response = requests.post(
        f"{config.PREDICTION_SERVICE_URL}/predict",
        json=payload,
        timeout=config.PREDICTION_TIMEOUT_SECONDS,
    )
    if response.status_code >= 500:
        raise _upstream_error(response)
    return response


def predict_price(request: schemas.PredictionRequest) -> int:
    """
    Ask the prediction service for a resale price, rounded to whole units.

    Raises
    ------
    UpstreamError
        - 504 when the call exceeds the configured timeout.
        - 503 when the circuit breaker is open.
        - 502 for connection failures, error responses or malformed bodies.
    """
    try:
        response = _post_predict(build_payload(request))
    except CircuitBreakerError:
        logger.warning("Prediction circuit is open; not calling the service")
        raise UpstreamError(503, CIRCUIT_OPEN_MESSAGE)
    except requests.Timeout:
        logger.warning("Prediction service timed out after %ss", config.PREDICTION_TIMEOUT_SECONDS)
        raise UpstreamError(504, TIMEOUT_MESSAGE)
    except requests.ConnectionError as exc:
        logger.error("Prediction service unreachable: %s", exc)
        raise UpstreamError(502, NETWORK_MESSAGE)
    except requests.RequestException as exc:
        logger.error("Prediction request failed: %s", exc)
        raise UpstreamError(502, UNREACHABLE_MESSAGE)

    if not response.ok:
        raise _upstream_error(response)

    try:
        data = response.json()
    except ValueError:
        raise UpstreamError(502, INVALID_RESPONSE_MESSAGE)

    price = data.get("predicted_price") if isinstance(data, dict) else None
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise UpstreamError(502, INVALID_RESPONSE_MESSAGE)
    return round(price)


def service_status() -> str:
    try:
        response = requests.get(
            f"{config.PREDICTION_SERVICE_URL}/health",
            timeout=config.PREDICTION_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.warning("Prediction health check failed: %s", exc)
        return "offline"
    return "online" if response.ok else "offline"
