import os
import logging
from dotenv import load_dotenv
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings
from typing import ClassVar, List, Optional

# Load environment variables from .env file
load_dotenv(".env", override=True)
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Class to store all the settings of the EventPulse application."""

    # ------------------------------
    # Database - Required
    # ------------------------------
    DATABASE_URL: str = Field(env="DATABASE_URL")
    DB_ECHO: bool = Field(default=False, env="DB_ECHO")

    # ------------------------------
    # Auth
    # ------------------------------
    SECRET_KEY: str = Field(default="dev-secret-key", env="SECRET_KEY")
    ALGORITHM: str = Field(default="HS256", env="ALGORITHM")
    ACCESS_TOKEN_EXPIRE_HOURS: int = Field(default=24, env="ACCESS_TOKEN_EXPIRE_HOURS")
    BCRYPT_ROUNDS: int = Field(default=10, env="BCRYPT_ROUNDS")

    # ------------------------------
    # Rate limiting
    # ------------------------------
    RATE_LIMIT_ENABLED: bool = Field(default=True, env="RATE_LIMIT_ENABLED")
    LOGIN_RATE_LIMIT: str = Field(default="10/minute", env="LOGIN_RATE_LIMIT")

    # ------------------------------
    # AWS - Optional (payment proofs, QR codes)
    # ------------------------------
    AWS_ACCESS_KEY_ID: str = Field(default="", env="AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: str = Field(default="", env="AWS_SECRET_ACCESS_KEY")
    AWS_S3_BUCKET: str = Field(default="", env="AWS_S3_BUCKET")
    AWS_REGION: str = Field(default="us-east-1", env="AWS_REGION")
    AWS_S3_BASE_URL: str = Field(default="", env="AWS_S3_BASE_URL")

    # ------------------------------
    # URLs - Optional with defaults
    # ------------------------------
    API_PREFIX: str = Field(default="/api", env="API_PREFIX")
    API_BASE_URL: str = Field(default="http://localhost:8000", env="API_BASE_URL")
    FRONTEND_URL: str = Field(default="http://localhost:5173", env="FRONTEND_URL")

    # ------------------------------
    # Environment
    # ------------------------------
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # ------------------------------
    # Database models
    # ------------------------------
    DB_MODELS: ClassVar[List[str]] = [
        "app.models.reference",
        "app.models.user",
        "app.models.event",
        "app.models.invitation",
        "app.models.registration",
        "app.models.notifications",
    ]

    # ------------------------------
    # Computed Fields
    # ------------------------------
    @computed_field
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """Computed field for CORS origins based on environment."""
        if self.ENVIRONMENT == "production":
            return [self.FRONTEND_URL]
        return [self.FRONTEND_URL, "http://localhost:3000", "http://localhost:5173"]

    @computed_field
    @property
    def COOKIE_DOMAIN(self) -> Optional[str]:
        """Computed field for cookie domain based on environment."""
        return None if self.ENVIRONMENT != "production" else os.getenv("COOKIE_DOMAIN")

    class Config:
        """Configuration for the settings class."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate the settings
settings = Settings()
