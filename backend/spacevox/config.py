import tempfile
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    SECRET_KEY: str = "change-this-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24
    FRONTEND_ORIGINS: List[str] = ["http://localhost:5173"]

    SCHEDULER_ENABLED: bool = True
    SWEEP_INTERVAL_SECONDS: int = 30

    JOIN_RATE_LIMIT_MAX: int = 5
    JOIN_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    QUEUE_LOCK_TIMEOUT_SECONDS: float = 10
    LOCK_DIR: str = tempfile.gettempdir()

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
