from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+pysqlite:///./studylib.db"
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    ENVIRONMENT: str = "local"
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    ADMIN_EMAILS: list[str] = []
    DEFAULT_MONTHLY_FEE: Decimal = Decimal("500.00")
    DUE_PERIOD_DAYS: int = 30
    CURRENCY_SYMBOL: str = "₹"
    LIBRARY_NAME: str = "Shri Hanumant Library"
    LIBRARY_ADDRESS: str | None = None
    LIBRARY_CONTACT: str | None = None
    LIBRARY_TIMEZONE: str = "UTC"
    PASSWORD_MIN_LENGTH: int = 8
    ENABLE_SCHEDULER: bool = True
    OVERDUE_DIGEST_HOUR: int = 3

    class Config:
        env_file = ".env"


settings = Settings()
