import json

from pydantic_settings import BaseSettings
from pydantic import ConfigDict, field_validator


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./ddproperty.db"

    # JWT
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Server
    BASE_URL: str = "http://localhost:5001"
    PORT: int = 5001
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"  # JSON list or comma-separated

    # Key required by the public random-properties widget
    API_KEY: str = ""

    # Media
    MEDIA_ROOT: str = "./public/images"
    MEDIA_URL_PREFIX: str = "/images"
    ICON_BASE_URL: str = "http://localhost:5001/images"

    PROPERTY_CODE_MAX_RETRIES: int = 5

    @field_validator("BASE_URL", "ICON_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("MEDIA_URL_PREFIX", mode="before")
    @classmethod
    def normalize_url_prefix(cls, v):
        """Always '/something' with no trailing slash."""
        if isinstance(v, str):
            return "/" + v.strip("/")
        return v

    @property
    def cors_origins(self) -> list[str]:
        raw = self.CORS_ORIGINS.strip()
        if raw.startswith("["):
            return [str(o).strip() for o in json.loads(raw) if str(o).strip()]
        return [o.strip() for o in raw.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
