from fastapi import Request

from fraud_detector.services.fraud_service import FraudDecisionService


def get_fraud_service(request: Request) -> FraudDecisionService:
    return request.app.state.fraud_service
