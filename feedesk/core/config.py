from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(480, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Receipts
    currency_code: str = Field("UGX", alias="CURRENCY_CODE")
    receipt_prefix: str = Field("RCP", alias="RECEIPT_PREFIX")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_dir: Optional[str] = Field(None, alias="LOG_DIR")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
