from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "development"
    SERVICE_PORT: int = 3000
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"
    MAX_BODY_SIZE: int = 10 * 1024 * 1024

    # Spreadsheet webhook
    WEBHOOK_URL: AnyHttpUrl | None = None
    WEBHOOK_TIMEOUT_SECONDS: float = 10.0
    SUBMISSION_SOURCE: str = "bestie.co.ke"

    # Email transport; disabled unless both credentials are set
    EMAIL_USER: str | None = None
    EMAIL_PASS: str | None = None
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False  # True for implicit TLS (465), False for STARTTLS
    SMTP_TIMEOUT_SECONDS: float = 10.0
    NOTIFY_EMAIL: str | None = None
    EMAIL_SENDER_NAME: str = "BESTIE"

    # Optional per-sink bound enforced by the dispatcher
    DISPATCH_DEADLINE_SECONDS: float | None = None

    @property
    def email_configured(self) -> bool:
        return bool(self.EMAIL_USER and self.EMAIL_PASS)

    @property
    def operator_mailbox(self) -> str | None:
        return self.NOTIFY_EMAIL or self.EMAIL_USER


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
