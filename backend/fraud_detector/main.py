import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fraud_detector.api.v1.api import api_router
from fraud_detector.core.config import build_notification_settings, get_settings
from fraud_detector.core.logging import configure_logging
from fraud_detector.llm.provider import OpenAIChatProvider
from fraud_detector.llm.tracing import LoggingTraceHook, TraceHook
from fraud_detector.services.escalation_service import EscalationNotifier
from fraud_detector.services.fraud_service import FraudDecisionService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    if not settings.llm_api_key:
        logger.warning("LLM_API_KEY is not set; analysis calls will fail")
    llm_provider = OpenAIChatProvider(
        settings.llm_api_key or "",
        settings.llm_base_url,
        timeout=settings.llm_timeout_seconds,
        max_tool_rounds=settings.llm_max_tool_rounds,
    )

    notifier = EscalationNotifier(build_notification_settings(settings))
    if notifier.mock_mode:
        logger.warning("SMTP credentials are not set; escalation emails will be logged, not sent")

    trace_hook = LoggingTraceHook(settings.app_name) if settings.tracing_enabled else TraceHook()
    app.state.fraud_service = FraudDecisionService(settings, llm_provider, notifier, trace_hook)
    logger.info("Fraud decision service initialized", extra={"model": settings.llm_model})
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(request: Request, exc: RequestValidationError):
        if any(error.get("type") == "json_invalid" for error in exc.errors()):
            message = "Request body is not valid JSON"
        else:
            message = "Request body must be a JSON object"
        return JSONResponse(status_code=400, content={"error": message})

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
