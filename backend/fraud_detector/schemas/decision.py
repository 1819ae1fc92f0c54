from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Decision = Literal["ALLOW", "BLOCK", "ESCALATE"]


class FraudDecision(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    decision: Decision
    confidence: float = Field(..., ge=0, le=1)
    reasoning: str = ""
    risk_score: float = Field(..., ge=0, le=1)
    key_factors: List[str] = Field(default_factory=list)
    recommendation: str = ""

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if isinstance(data.get("decision"), str):
            data["decision"] = data["decision"].strip().upper()
        # Without a separate risk score the model's confidence stands in.
        if data.get("risk_score") is None and "confidence" in data:
            data["risk_score"] = data["confidence"]
        return data


class EscalationRequest(BaseModel):
    """Arguments of the escalation tool offered to the model."""

    model_config = ConfigDict(frozen=True)

    alert_id: str = Field(..., description="The unique alert ID for this transaction")
    tx_id: str = Field(..., description="The transaction ID")
    reason: str = Field(..., description="Detailed explanation of why this transaction needs human review")
    risk_factors: List[str] = Field(..., description="List of specific risk factors that triggered escalation")
    customer_id: str = Field(..., description="The customer ID involved in the transaction")
    amount: float = Field(..., description="Transaction amount")
    merchant_name: str = Field(..., description="Merchant name")


class EscalationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    alert_id: str
    escalation_timestamp: Optional[str] = None


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    alert_id: str
    decision: FraudDecision
    processing_time_ms: int = Field(..., ge=0)
    timestamp: str
    agent_response: Optional[str] = None
    escalations: List[EscalationResult] = Field(default_factory=list)
