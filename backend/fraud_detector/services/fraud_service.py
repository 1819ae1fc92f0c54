import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import ValidationError

from fraud_detector.core.config import Settings
from fraud_detector.llm.provider import LLMMessage, LLMProvider, LLMResponse
from fraud_detector.llm.tracing import TraceHook
from fraud_detector.schemas.alert import TransactionAlert
from fraud_detector.schemas.decision import AnalysisResult, EscalationResult
from fraud_detector.services.decision_parser import parse_decision
from fraud_detector.services.escalation_service import ESCALATION_TOOL_NAME, EscalationNotifier
from fraud_detector.services.prompt_renderer import AGENT_INSTRUCTIONS, PROMPT_VERSION, render_prompt

logger = logging.getLogger(__name__)


class AlertValidationError(ValueError):
    """Raised when an incoming alert is missing required fields or is malformed."""


class FraudDecisionService:
    def __init__(
        self,
        settings: Settings,
        llm_provider: LLMProvider,
        notifier: EscalationNotifier,
        trace_hook: TraceHook | None = None,
    ) -> None:
        self.settings = settings
        self.llm_provider = llm_provider
        self.notifier = notifier
        self.trace_hook = trace_hook or TraceHook()

    def analyze(self, payload: Dict[str, Any]) -> AnalysisResult:
        start = time.perf_counter()
        alert = self._parse_alert(payload)

        messages = [
            LLMMessage(role="system", content=AGENT_INSTRUCTIONS),
            LLMMessage(role="user", content=render_prompt(alert)),
        ]
        response = self.llm_provider.generate(
            messages,
            self.settings.llm_model,
            tools=[self.notifier.as_tool()],
        )
        decision = parse_decision(response.text)
        processing_time_ms = int((time.perf_counter() - start) * 1000)

        result = AnalysisResult(
            alert_id=alert.alert_id,
            decision=decision,
            processing_time_ms=processing_time_ms,
            timestamp=datetime.now(timezone.utc).isoformat(),
            agent_response=response.text,
            escalations=self._escalations(response),
        )
        logger.info(
            "Alert analyzed",
            extra={
                "alert_id": alert.alert_id,
                "decision": decision.decision,
                "processing_time_ms": processing_time_ms,
            },
        )
        self.trace_hook.record(
            "fraud_analysis",
            {
                "alert_id": alert.alert_id,
                "decision": decision.decision,
                "confidence": decision.confidence,
                "escalations": len(result.escalations),
                "model": self.settings.llm_model,
                "prompt_version": PROMPT_VERSION,
                "duration_ms": processing_time_ms,
            },
        )
        return result

    @staticmethod
    def _parse_alert(payload: Dict[str, Any]) -> TransactionAlert:
        if not isinstance(payload, dict) or not payload.get("alert_id") or not payload.get("transaction"):
            raise AlertValidationError("Invalid transaction data: missing required fields")
        try:
            return TransactionAlert.model_validate(payload)
        except ValidationError as exc:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
            raise AlertValidationError(f"Invalid transaction data: {', '.join(fields)}") from exc

    @staticmethod
    def _escalations(response: LLMResponse) -> List[EscalationResult]:
        results = []
        for invocation in response.tool_invocations:
            if invocation.name != ESCALATION_TOOL_NAME or "success" not in invocation.output:
                continue
            results.append(EscalationResult.model_validate(invocation.output))
        return results
