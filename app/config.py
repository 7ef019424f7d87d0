import os
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=os.getenv("ENV_FILE", ".env"), extra="ignore")

    ENVIRONMENT: str = "prod"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: Optional[str] = None
    POSTGRES_HOST: str = "localhost:5432"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "<PASSWORD>"
    POSTGRES_DB: str = "postgres"

    JWT_SECRET_KEY: str = "secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 10
    DEV_ADMIN_EMAIL: str = "admin@example.com"

    # Max wait for the per-customer ledger lock before reporting a conflict
    SESSION_LOCK_TIMEOUT_SECONDS: float = 5.0

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}/{self.POSTGRES_DB}"


config = Config()
