from fastapi import APIRouter, Depends

from fraud_detector.api.deps import get_fraud_service
from fraud_detector.services.fraud_service import FraudDecisionService

router = APIRouter()


@router.get("/health")
def health(service: FraudDecisionService = Depends(get_fraud_service)):
    return {
        "status": "ok",
        "llm_configured": bool(service.settings.llm_api_key),
        "notification_mode": "mock" if service.notifier.mock_mode else "live",
    }
