from fastapi import APIRouter, HTTPException

from .. import schemas
from ..pricing import UpstreamError, predict_price, service_status

router = APIRouter(prefix="/predictions", tags=["predictions"])


@router.get("/health", response_model=schemas.Envelope[schemas.ServiceStatus])
def prediction_service_health():
    """Report whether the price-prediction service answers its health check."""
    return {"data": {"status": service_status()}}


@router.post("/", response_model=schemas.Envelope[schemas.PredictionOut])
def predict(prediction_in: schemas.PredictionRequest):
    """
    Estimate the resale price of a device.

    The call to the prediction service is bounded by a fixed timeout and
    guarded by a circuit breaker.

    Raises
    ------
    HTTPException
        - 502 if the service fails or answers with an unusable body.
        - 503 if the circuit is open.
        - 504 if the service does not answer in time.
    """
    try:
        price = predict_price(prediction_in)
    except UpstreamError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    return {"message": "Price prediction successful", "data": {"predicted_price": price}}
