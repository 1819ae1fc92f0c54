import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from fraud_detector.api.deps import get_fraud_service
from fraud_detector.schemas.decision import AnalysisResult
from fraud_detector.services.fraud_service import AlertValidationError, FraudDecisionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analyze", response_model=AnalysisResult)
def analyze_transaction(
    payload: Dict[str, Any] = Body(...),
    service: FraudDecisionService = Depends(get_fraud_service),
):
    try:
        return service.analyze(payload)
    except AlertValidationError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except Exception as exc:
        logger.exception("Error analyzing transaction", extra={"alert_id": payload.get("alert_id")})
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to analyze transaction", "details": str(exc) or type(exc).__name__},
        )
