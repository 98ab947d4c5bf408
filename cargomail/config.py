"""
Configuration module for the Cargomail sync backend
"""
import os
from functools import lru_cache

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Application settings loaded from environment variables"""

    # Security
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-this-secret-key-in-production")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440")
    )

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./cargomail.db")

    # Transaction deadlines (seconds)
    READ_TIMEOUT: float = float(os.getenv("READ_TIMEOUT", "3"))
    WRITE_TIMEOUT: float = float(os.getenv("WRITE_TIMEOUT", "5"))

    # Uploaded bodies and files
    BLOB_STORAGE_PATH: str = os.getenv("BLOB_STORAGE_PATH", "./blobs")

    # Web server
    WEB_HOST: str = os.getenv("WEB_HOST", "0.0.0.0")
    WEB_PORT: int = int(os.getenv("WEB_PORT", "8181"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


# Global settings instance
settings = get_settings()
