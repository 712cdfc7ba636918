"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from currency_converter.services.validation import CredentialPolicy

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_path: Path = Path("currency_converter.db")
    session_path: Path = Path("session.json")
    rates_base_url: str = "https://api.exchangerate-api.com/v4/latest"
    rates_timeout_seconds: float = 10.0
    rates_max_age_seconds: int = 3600
    rates_retry_attempts: int = 1
    credential_min_length: int = 8
    credential_max_length: int = 50
    credential_require_upper: bool = False
    credential_require_lower: bool = False
    credential_require_digit: bool = False
    credential_require_symbol: bool = False
    credential_iterations: int = 240_000
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def credential_policy(self) -> CredentialPolicy:
        """Build the credential rules from the configured options."""
        return CredentialPolicy(
            min_length=self.credential_min_length,
            max_length=self.credential_max_length,
            require_upper=self.credential_require_upper,
            require_lower=self.credential_require_lower,
            require_digit=self.credential_require_digit,
            require_symbol=self.credential_require_symbol,
        )
