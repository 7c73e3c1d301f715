"""
Validator Configuration - Pydantic Settings for type-safe config.

NO DICTIONARIES - All configuration is strongly typed.
FAIL FAST - Invalid config is rejected when settings are loaded.
"""

import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_ENVIRONMENT = "production"


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Validator settings loaded from environment variables."""

    # Amazon RVS - only the literal "production" selects the production endpoint
    iap_environment: str = "sandbox"
    iap_timeout_seconds: float = 5.0  # 0 means "use the default"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console
    service_name: str = "amazon-iap-validator"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Whether the default client should talk to the production RVS endpoint."""
        return self.iap_environment == PRODUCTION_ENVIRONMENT

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate configuration when settings are loaded.

        A misconfigured timeout or logger surfaces here rather than on the
        first receipt check.
        """
        errors: list[str] = []

        if self.iap_timeout_seconds < 0:
            errors.append(
                f"IAP_TIMEOUT_SECONDS must be >= 0, got: {self.iap_timeout_seconds}"
            )

        if self.log_format not in ("json", "console"):
            errors.append(f"LOG_FORMAT must be 'json' or 'console', got: {self.log_format}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"LOG_LEVEL is not a valid level: {self.log_level}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CONFIGURATION ERROR - RECEIPT VALIDATOR CANNOT START",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the process-wide settings instance, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
