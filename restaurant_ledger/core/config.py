"""
Application configuration using Pydantic Settings
"""

from decimal import Decimal
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Restaurant Ledger"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/api/v1"
    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Pricing
    CURRENCY: str = "BRL"
    SERVICE_TAX_RATE: Decimal = Decimal("0.10")  # 10% service charge

    # Kitchen display: elapsed minutes at which a ticket becomes normal/high/urgent
    PRIORITY_THRESHOLDS_MINUTES: tuple[int, int, int] = (10, 20, 30)

    # Tables follow the order lifecycle (occupied on dine-in order, freed on payment/cancel)
    AUTO_OCCUPY_TABLES: bool = True

    # Digital menu
    PUBLIC_MENU_BASE_URL: str = "https://restaurant.com/menu"

    # Payments
    PAYMENT_SIMULATED_DELAY: float = 1.0  # seconds

    # API role gating: role assumed when the X-User-Role header is absent
    DEFAULT_USER_ROLE: str = "admin"

    # Demo data
    SEED_DEMO_DATA: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
