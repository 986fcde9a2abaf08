from __future__ import annotations
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "ecommerce"

    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    BCRYPT_ROUNDS: int = 10

    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # Checkout pricing (ZAR)
    SHIPPING_PRICE: float = 45.0
    TAX_RATE: float = 0.15

    SEED_ON_STARTUP: bool = True
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
