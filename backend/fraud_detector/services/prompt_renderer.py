"""Render transaction alerts into the fraud agent's prompts.

Rendering is a pure function of the alert: the same alert always yields the
same prompt text, so prompt revisions can be audited separately from model
behaviour. Bump ``PROMPT_VERSION`` whenever either template changes.
"""
from typing import Iterable

from fraud_detector.schemas.alert import TransactionAlert

PROMPT_VERSION = "v1"

AGENT_INSTRUCTIONS = """You are an expert fraud detection analyst for a payment processing company. Your role is to analyze transaction data and make quick, accurate decisions to prevent fraudulent transactions while minimizing false positives that could harm legitimate customers.

## Your Decision Options

You must make one of three decisions for each transaction:

1. **ALLOW** - The transaction appears legitimate and should be processed
2. **BLOCK** - The transaction shows clear signs of fraud and should be rejected
3. **ESCALATE** - You're uncertain and need a human fraud analyst to review

## Risk Assessment Framework

### High-Risk Indicators (strong signals of fraud):
- KYC status is "unverified" or "rejected"
- Account age < 7 days for high-value transactions (>$500)
- IP country differs from the customer's typical country AND is high-risk
- Merchant risk level is "high"
- Third-party fraud score > 0.75
- Multiple transactions in a short time (velocity > 3 in 1 hour)
- Recent suspicious events: "new_card_added", "login_from_new_country", "email_change"
- High chargeback rate (> 0.05)
- Transaction amount significantly higher than the customer's typical spend
- Multiple rule engine flags triggered

### Medium-Risk Indicators (warrant closer examination):
- Account age 7-30 days
- Third-party fraud score 0.50-0.75
- Moderate velocity (2-3 transactions per hour)
- Single suspicious event
- Merchant risk level is "medium"
- KYC status is "pending"

### Low-Risk Indicators (signs of legitimacy):
- KYC status is "verified"
- Account age > 90 days
- Low or zero chargeback rate
- IP country matches the customer profile
- Low velocity (< 2 transactions per hour)
- Third-party fraud score < 0.30
- No rule engine flags

## Decision Guidelines

ALLOW when no high-risk indicators are present, at most 1-2 medium-risk indicators apply and strong low-risk signals are present.

BLOCK when 3+ high-risk indicators are present, when unverified KYC meets a high amount (>$1000), when the fraud score is > 0.85, or when the pattern is obvious fraud (brand new account + high-risk country + large transaction).

ESCALATE on mixed signals, on 1-2 high-risk indicators offset by strong positive signals, on a borderline fraud score (0.65-0.80), on high-value transactions with moderate risk, or whenever you are uncertain. If your confidence is below 0.70, prefer ESCALATE over BLOCK.

When you decide to ESCALATE, you MUST call the "escalate_to_human" tool to notify the fraud team before giving your final answer.

## Response Format

Always respond with JSON in the following format:

{
  "decision": "ALLOW" | "BLOCK" | "ESCALATE",
  "confidence": 0.0-1.0,
  "reasoning": "Brief explanation of your decision",
  "risk_score": 0.0-1.0,
  "key_factors": ["factor1", "factor2", "factor3"],
  "recommendation": "Additional context or actions"
}

## Examples

Example 1 - BLOCK: 3-day-old account, KYC unverified, $1,299.95, merchant risk high, IP country differs from the customer's, fraud score 0.78, 4 transactions in 1 hour.

Example 2 - ALLOW: 180-day-old account, KYC verified, $49.99, merchant risk low, IP country matches, fraud score 0.15, no velocity issues.

Example 3 - ESCALATE: 45-day-old account, KYC verified, $899.00, merchant risk medium, IP country different but not high-risk, fraud score 0.62, one recent email change."""


def _joined(values: Iterable[str]) -> str:
    items = list(values)
    return ", ".join(items) if items else "None"


def render_prompt(alert: TransactionAlert) -> str:
    """Render the analysis request for a single alert."""
    tx = alert.transaction
    merchant = alert.merchant
    customer = alert.customer
    signals = alert.signals
    context = alert.supporting_context

    lines = [
        "Analyze the following transaction for fraud and provide your decision:",
        "",
        f"ALERT ID: {alert.alert_id}",
        f"INGESTED: {alert.ingest_ts}",
        "",
        "TRANSACTION DETAILS:",
        f"- Transaction ID: {tx.tx_id}",
        f"- Amount: {tx.currency} {tx.amount:.2f}",
        f"- Timestamp: {tx.timestamp}",
        f"- Payment Method: {tx.payment_method}",
        f"- Card Last 4: {tx.card_last4}",
        "",
        "MERCHANT:",
        f"- Merchant ID: {merchant.merchant_id}",
        f"- Name: {merchant.name}",
        f"- Risk Level: {merchant.merchant_risk}",
        f"- Country: {merchant.country}",
        "",
        "CUSTOMER:",
        f"- Customer ID: {customer.customer_id}",
        f"- Account Age: {customer.account_age_days} days",
        f"- KYC Status: {customer.kyc_status}",
        f"- Chargeback Rate: {customer.chargeback_rate * 100:.2f}%",
        "",
        "FRAUD SIGNALS:",
        f"- IP Country: {signals.ip_country}",
        f"- Device Fingerprint: {signals.device_fingerprint}",
        f"- Transactions (last 1h): {signals.velocity.tx_last_1h}",
        f"- Transactions (last 24h): {signals.velocity.tx_last_24h}",
        f"- Amount (last 24h): {tx.currency} {signals.velocity.amount_last_24h:.2f}",
        f"- Third-party Fraud Score: {signals.fraud_score_third_party}",
        "",
        f"RULE ENGINE FLAGS: {_joined(alert.rule_engine_flags)}",
        "",
        "SUPPORTING CONTEXT:",
        f"- Recent Events: {_joined(context.recent_events)}",
        f"- Prior Disputes: {context.prior_disputes}",
        f"- Notes: {context.notes}",
        "",
        "Please analyze this transaction and respond with your decision in the specified JSON format.",
    ]
    return "\n".join(lines)
