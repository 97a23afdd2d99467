"""
Environment configuration for the procurement approval service.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application configuration
    APP_NAME: str = Field(default="Procurement Approval Service", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="v1", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: str = Field(default="*", alias="BACKEND_CORS_ORIGINS")

    # Database configuration
    DATABASE_URL: str = "sqlite:///./procurement.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10
    SEED_ON_STARTUP: bool = True

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"
    LOG_FILE: Optional[str] = None
    LOG_SQL_QUERIES: bool = False
    ENABLE_STRUCTURED_LOGGING: bool = False

    # Approval routing
    CENTRAL_UNIT_CODE: str = "HO"
    CENTRAL_SCOPE_ROLE_CODES: str = (
        "DIREKTUR_KEUANGAN,DIREKTUR_OPERASIONAL,DIREKTUR_UTAMA,"
        "KADIV_KEUANGAN,GENERAL_AFFAIR"
    )

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    # Validators
    @field_validator('LOG_LEVEL')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the log level and reject unknown names"""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return level

    @field_validator('LOG_FORMAT')
    @classmethod
    def normalize_log_format(cls, v: str) -> str:
        fmt = v.strip().lower()
        if fmt not in {"json", "text"}:
            raise ValueError(f"Unsupported LOG_FORMAT: {v}")
        return fmt

    @field_validator('CENTRAL_UNIT_CODE')
    @classmethod
    def normalize_unit_code(cls, v: str) -> str:
        code = v.strip().upper()
        if not code:
            raise ValueError("CENTRAL_UNIT_CODE must not be empty")
        return code

    # Helper methods
    def get_central_scope_role_codes(self) -> List[str]:
        """Parse CENTRAL_SCOPE_ROLE_CODES from comma-separated string to list"""
        return [
            code.strip().upper()
            for code in self.CENTRAL_SCOPE_ROLE_CODES.split(",")
            if code.strip()
        ]

    def get_cors_origins(self) -> List[str]:
        """Parse CORS_ORIGINS from comma-separated string to list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def get_database_url(self) -> str:
        return self.DATABASE_URL

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
