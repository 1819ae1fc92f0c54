from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TransactionDetails(_Frozen):
    tx_id: str
    amount: float
    currency: str
    timestamp: str
    payment_method: str
    card_last4: str


class MerchantProfile(_Frozen):
    merchant_id: str
    name: str
    merchant_risk: Literal["low", "medium", "high"]
    country: str


class CustomerProfile(_Frozen):
    customer_id: str
    account_age_days: int = Field(..., ge=0)
    kyc_status: Literal["verified", "unverified", "pending", "rejected"]
    chargeback_rate: float = Field(..., ge=0, description="Fraction of transactions charged back")


class VelocitySignals(_Frozen):
    tx_last_1h: int = Field(..., ge=0)
    tx_last_24h: int = Field(..., ge=0)
    amount_last_24h: float = Field(..., ge=0)


class FraudSignals(_Frozen):
    ip_country: str
    device_fingerprint: str
    velocity: VelocitySignals
    fraud_score_third_party: float = Field(..., ge=0, le=1)


class SupportingContext(_Frozen):
    recent_events: List[str] = Field(default_factory=list)
    prior_disputes: int = Field(default=0, ge=0)
    notes: str = ""


class TransactionAlert(_Frozen):
    """One transaction flagged upstream for risk review."""

    alert_id: str
    ingest_ts: str
    transaction: TransactionDetails
    merchant: MerchantProfile
    customer: CustomerProfile
    signals: FraudSignals
    rule_engine_flags: List[str] = Field(default_factory=list)
    supporting_context: SupportingContext = Field(default_factory=SupportingContext)
