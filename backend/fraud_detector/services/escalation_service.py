import html
import logging
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Any, Callable, Dict

from fraud_detector.core.config import NotificationSettings
from fraud_detector.llm.provider import LLMTool
from fraud_detector.schemas.decision import EscalationRequest, EscalationResult

logger = logging.getLogger(__name__)

ESCALATION_TOOL_NAME = "escalate_to_human"
ESCALATION_TOOL_DESCRIPTION = (
    "Escalate a transaction to a human fraud analyst for manual review when the automated "
    "system is uncertain about the fraud decision"
)
FOOTER = "This is an automated escalation from the Fraud Detection System"

SmtpFactory = Callable[..., smtplib.SMTP]


class EscalationNotifier:
    """Notify the fraud team by email when a transaction needs human review.

    Without SMTP credentials the notifier runs in mock mode: the message is
    built and logged but never sent.
    """

    def __init__(self, settings: NotificationSettings, smtp_factory: SmtpFactory = smtplib.SMTP) -> None:
        self.settings = settings
        self.smtp_factory = smtp_factory

    @property
    def mock_mode(self) -> bool:
        return self.settings.mock_mode

    def escalate(self, request: EscalationRequest) -> EscalationResult:
        recipient = self.settings.recipient
        try:
            if self.mock_mode:
                logger.info(
                    "Mock escalation email",
                    extra={
                        "alert_id": request.alert_id,
                        "email": {
                            "to": recipient,
                            "subject": self.build_subject(request),
                            "body": self.build_text_body(request),
                        },
                    },
                )
                message = f"Escalation notification sent (mock mode) to {recipient}"
            else:
                self._send(request)
                message = f"Escalation notification sent to {recipient}"
        except Exception as exc:
            logger.exception("Failed to send escalation email", extra={"alert_id": request.alert_id})
            return EscalationResult(
                success=False,
                message=f"Failed to send escalation: {exc}",
                alert_id=request.alert_id,
            )

        return EscalationResult(
            success=True,
            message=message,
            alert_id=request.alert_id,
            escalation_timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def as_tool(self) -> LLMTool:
        def handler(arguments: Dict[str, Any]) -> Dict[str, Any]:
            result = self.escalate(EscalationRequest.model_validate(arguments))
            return result.model_dump(exclude_none=True)

        return LLMTool(
            name=ESCALATION_TOOL_NAME,
            description=ESCALATION_TOOL_DESCRIPTION,
            parameters=EscalationRequest.model_json_schema(),
            handler=handler,
        )

    def _send(self, request: EscalationRequest) -> None:
        email = EmailMessage()
        email["From"] = self.settings.sender
        email["To"] = self.settings.recipient
        email["Subject"] = self.build_subject(request)
        email.set_content(self.build_text_body(request))
        email.add_alternative(self.build_html_body(request), subtype="html")

        with self.smtp_factory(
            self.settings.smtp_host, self.settings.smtp_port, timeout=self.settings.timeout
        ) as smtp:
            if self.settings.use_starttls:
                smtp.starttls()
            smtp.login(self.settings.smtp_user, self.settings.smtp_password)
            smtp.send_message(email)

    @staticmethod
    def build_subject(request: EscalationRequest) -> str:
        return f"FRAUD ALERT ESCALATION - {request.alert_id}"

    @staticmethod
    def build_text_body(request: EscalationRequest) -> str:
        factors = "\n".join(f"{i}. {factor}" for i, factor in enumerate(request.risk_factors, start=1))
        return "\n".join(
            [
                "TRANSACTION REQUIRES MANUAL REVIEW",
                "",
                f"Alert ID: {request.alert_id}",
                f"Transaction ID: {request.tx_id}",
                f"Customer ID: {request.customer_id}",
                f"Amount: ${request.amount:.2f}",
                f"Merchant: {request.merchant_name}",
                "",
                "ESCALATION REASON:",
                request.reason,
                "",
                "RISK FACTORS:",
                factors,
                "",
                "ACTION REQUIRED:",
                "Please review this transaction and make a final determination (ALLOW/BLOCK).",
                "",
                "---",
                FOOTER,
            ]
        )

    @staticmethod
    def build_html_body(request: EscalationRequest) -> str:
        rows = [
            ("Alert ID", request.alert_id),
            ("Transaction ID", request.tx_id),
            ("Customer ID", request.customer_id),
            ("Amount", f"${request.amount:.2f}"),
            ("Merchant", request.merchant_name),
        ]
        cell = 'style="padding: 10px; border: 1px solid #ddd;"'
        shaded = ' style="background-color: #f0f0f0;"'
        table_rows = "\n".join(
            f"<tr{shaded if i % 2 == 0 else ''}>"
            f"<td {cell}><strong>{label}</strong></td><td {cell}>{html.escape(value)}</td></tr>"
            for i, (label, value) in enumerate(rows)
        )
        factors = "\n".join(f"<li>{html.escape(factor)}</li>" for factor in request.risk_factors)
        return (
            "<h2>TRANSACTION REQUIRES MANUAL REVIEW</h2>\n"
            '<table style="border-collapse: collapse; width: 100%; max-width: 600px;">\n'
            f"{table_rows}\n"
            "</table>\n"
            '<h3 style="color: #d9534f; margin-top: 20px;">ESCALATION REASON</h3>\n'
            f"<p>{html.escape(request.reason)}</p>\n"
            '<h3 style="color: #d9534f;">RISK FACTORS</h3>\n'
            f"<ul>\n{factors}\n</ul>\n"
            '<p style="margin-top: 30px; padding: 15px; background-color: #fff3cd; '
            'border-left: 4px solid #ffc107;"><strong>ACTION REQUIRED:</strong> Please review this '
            "transaction and make a final determination (ALLOW/BLOCK).</p>\n"
            f'<p style="color: #666; font-size: 12px; margin-top: 30px;">{FOOTER}</p>'
        )
