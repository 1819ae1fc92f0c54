"""Application configuration."""
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = Field(default="fraud-detector", validation_alias="APP_NAME")
    environment: str = Field(default="dev", validation_alias="ENVIRONMENT")
    api_prefix: str = Field(default="/api", validation_alias="API_PREFIX")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    llm_api_key: str | None = Field(default=None, validation_alias="LLM_API_KEY")
    llm_base_url: str = Field(default="https://api.openai.com/v1", validation_alias="LLM_BASE_URL")
    llm_model: str = Field(default="gpt-4o-mini", validation_alias="LLM_MODEL")
    llm_timeout_seconds: float = Field(default=60.0, gt=0, validation_alias="LLM_TIMEOUT_SECONDS")
    llm_max_tool_rounds: int = Field(default=4, ge=1, validation_alias="LLM_MAX_TOOL_ROUNDS")

    escalation_email: str = Field(default="fraud-team@example.com", validation_alias="ESCALATION_EMAIL")
    smtp_host: str = Field(default="smtp.gmail.com", validation_alias="SMTP_HOST")
    smtp_port: int = Field(default=587, validation_alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, validation_alias="SMTP_USER")
    smtp_pass: str | None = Field(default=None, validation_alias="SMTP_PASS")
    smtp_starttls: bool = Field(default=True, validation_alias="SMTP_STARTTLS")

    tracing_enabled: bool = Field(default=False, validation_alias="TRACING_ENABLED")

    class Config:
        env_prefix = ""
        env_file = ".env"
        env_file_encoding = "utf-8"


class NotificationSettings(BaseModel):
    """Outbound mail settings for escalation notices."""

    recipient: str
    smtp_host: str
    smtp_port: int
    smtp_user: str | None = None
    smtp_password: str | None = None
    use_starttls: bool = True
    timeout: float = 30.0

    @property
    def mock_mode(self) -> bool:
        return not self.smtp_user or not self.smtp_password

    @property
    def sender(self) -> str:
        return self.smtp_user or self.recipient


def build_notification_settings(settings: Settings) -> NotificationSettings:
    """Extract the mail transport settings from the runtime settings."""
    return NotificationSettings(
        recipient=settings.escalation_email,
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_user=settings.smtp_user,
        smtp_password=settings.smtp_pass,
        use_starttls=settings.smtp_starttls,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings."""
    return Settings()
