"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_ENV: str = "development"
    API_V1_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Local storage
    STORAGE_URL: str = "sqlite:///./savings_planner.db"

    # Frontend
    FRONTEND_URL: str = "http://localhost:5173"

    # Exchange rate provider
    EXCHANGE_API_KEY: str = ""
    EXCHANGE_API_BASE_URL: str = "https://v6.exchangerate-api.com/v6"
    EXCHANGE_API_BACKUP_URL: str = "https://api.exchangerate-api.com/v4/latest/USD"
    EXCHANGE_API_TIMEOUT_SECONDS: float = 30.0
    EXCHANGE_API_USE_BACKUP: bool = True

    # Currencies
    BASE_CURRENCY: str = "INR"
    FOREIGN_CURRENCY: str = "USD"
    FALLBACK_EXCHANGE_RATE: float = 83.5
    RATE_CACHE_TTL_SECONDS: int = 3600

    # CORS
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        if self.APP_ENV == "development":
            return ["*"]  # Allow all origins in development
        return [self.FRONTEND_URL, "http://localhost:5173"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
