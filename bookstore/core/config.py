from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "bookstore"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/bookstore.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Access tokens (issued by the auth service, verified here)
    JWT_ACCESS_SECRET: str = "dev-access-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRES_SECONDS: int = 900
    ACCESS_COOKIE_NAME: str = "access_token"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Coupon status sweep, minutes of each hour at which the worker runs it
    COUPON_REFRESH_MINUTES: set[int] = {0}


settings = Settings()
