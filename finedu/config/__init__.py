"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Database
    # ======================
    DATABASE_URL: str = "sqlite+aiosqlite:///./finedu.db"
    AUTO_CREATE_TABLES: bool = True
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    CONFIG_DIR: str = "config"

    # ======================
    # Access
    # ======================
    ADMIN_API_KEY: str = "change-me-in-production"

    # ======================
    # Portfolio
    # ======================
    DEFAULT_STARTING_BALANCE: float = 1_000_000.0
    MAX_BALANCE_INJECTION: float = 100_000_000.0

    # ======================
    # Market Simulator
    # ======================
    MARKET_SIMULATOR_AUTOSTART: bool = False
    SEED_CATALOGUE_ON_STARTUP: bool = True
    TIMEZONE: str = "Asia/Jakarta"

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
