from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path


class Settings(BaseSettings):
    # Database - must be supplied via environment (postgresql+psycopg2://... in production)
    DATABASE_URL: str = ""

    # Shopify shared webhook secret (HMAC-SHA256 key). Never logged.
    SHOPIFY_WEBHOOK_SECRET: Optional[str] = None

    # "development" exposes internal error messages in responses
    ENVIRONMENT: str = "development"

    # App Settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "http://localhost:3000"

    # Webhook business logic
    WEBHOOK_AUTO_APPROVE_ON_ORDER: bool = False

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        # Use absolute path to .env file
        env_file = Path(__file__).parent.parent.parent / ".env"
        env_file_encoding = 'utf-8'
        extra = "ignore"


settings = Settings()
