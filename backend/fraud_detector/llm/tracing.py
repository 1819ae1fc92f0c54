import logging
from typing import Any, Dict

logger = logging.getLogger("fraud_detector.trace")


class TraceHook:
    """Sink for per-analysis trace spans. The base hook discards them."""

    def record(self, name: str, attributes: Dict[str, Any]) -> None:
        return None


class LoggingTraceHook(TraceHook):
    """Emit trace spans as structured log lines."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name

    def record(self, name: str, attributes: Dict[str, Any]) -> None:
        logger.info("trace", extra={"service": self.service_name, "span": name, **attributes})
