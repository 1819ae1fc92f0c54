"""Turn the fraud agent's free-text reply into a FraudDecision.

The model is not bound to emit well-formed JSON, so parsing never fails: every
degraded path produces a decision, and those that cannot be read confidently
default to ESCALATE so a human reviews the transaction.
"""
import json
import logging
import re

from pydantic import ValidationError

from fraud_detector.schemas.decision import FraudDecision

logger = logging.getLogger(__name__)

# Greedy: first "{" to last "}" across lines.
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

HEURISTIC_FACTOR = "Agent analysis (heuristic keyword match)"
PARSE_FAILURE_FACTOR = "Unable to parse response"


def parse_decision(raw_text: str) -> FraudDecision:
    text = raw_text or ""
    match = _JSON_OBJECT.search(text)
    if match is None:
        return _keyword_decision(text)

    try:
        payload = json.loads(match.group(0))
        return FraudDecision.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Could not parse agent decision", extra={"error": str(exc)})
        return FraudDecision(
            decision="ESCALATE",
            confidence=0.5,
            reasoning=text,
            risk_score=0.6,
            key_factors=[PARSE_FAILURE_FACTOR],
            recommendation="Escalate due to parsing error",
        )


def _keyword_decision(text: str) -> FraudDecision:
    lowered = text.lower()
    logger.warning("Agent reply has no JSON object; using keyword fallback")

    if "decision" in lowered and "allow" in lowered:
        decision, confidence, risk_score = "ALLOW", 0.7, 0.3
        recommendation = "Process transaction"
    elif "decision" in lowered and "block" in lowered:
        decision, confidence, risk_score = "BLOCK", 0.8, 0.8
        recommendation = "Block transaction"
    else:
        decision, confidence, risk_score = "ESCALATE", 0.5, 0.6
        recommendation = "Escalate for human review"

    return FraudDecision(
        decision=decision,
        confidence=confidence,
        reasoning=text,
        risk_score=risk_score,
        key_factors=[HEURISTIC_FACTOR],
        recommendation=recommendation,
    )
