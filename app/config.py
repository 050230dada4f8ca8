from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from ``POLYSHARE_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="POLYSHARE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field("sqlite:///./polyshare.db", description="SQLAlchemy database URL")
    sql_echo: bool = Field(False, description="Log every SQL statement")

    jwt_secret: str = Field("change-me-polyshare-secret", description="HS256 signing key")
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = Field(60 * 24 * 7, ge=1)
    jwt_issuer: str = "polyshare-api"

    upload_dir: str = Field("uploads", description="Directory holding uploaded PDFs")
    max_upload_bytes: int = Field(20 * 1024 * 1024, ge=1)

    frontend_url: str = Field("http://localhost:5173", description="Allowed CORS origin")
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
