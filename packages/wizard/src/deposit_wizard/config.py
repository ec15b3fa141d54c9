"""Configuration system for the deposit wizard.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for the wizard and its API client.

Usage:
    from deposit_wizard.config import DepositConfig, configure_logging

    # Load from environment variables and .env file
    config = DepositConfig()
    configure_logging(config)

    print(config.api.base_url)
    print(config.wizard.debounce_seconds)
"""

import logging

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from deposit_core.accounts import SUPPORTED_CURRENCIES


class ApiConfig(BaseSettings):
    """Deposit API client settings.

    Environment Variables:
        DEPOSIT_API_BASE_URL: Base URL of the deposit API
        DEPOSIT_API_TIMEOUT: Request timeout in seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="DEPOSIT_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:8000/api/v1/",
        description="Base URL of the deposit API",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Request timeout in seconds",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and normalise the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base URL: {v!r}. Must start with http:// or https://")
        return v if v.endswith("/") else v + "/"


class WizardConfig(BaseSettings):
    """Form behaviour settings.

    Environment Variables:
        DEPOSIT_WIZARD_DEBOUNCE_MS: Delay before a typed deal reference is looked up
        DEPOSIT_WIZARD_DEFAULT_CURRENCY: Currency used before an account is chosen
        DEPOSIT_WIZARD_CUSTOMER_KEY: Customer key sent with deal inquiries
    """

    model_config = SettingsConfigDict(
        env_prefix="DEPOSIT_WIZARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debounce_ms: int = Field(
        default=500,
        ge=0,
        le=5000,
        description="Debounce window for deal reference lookups in milliseconds",
    )
    default_currency: str = Field(
        default="AED",
        description="Currency assumed until a deal or funding account fixes it",
    )
    customer_key: str = Field(
        default="",
        description="Customer key for deal inquiries",
    )

    @field_validator("default_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        v_upper = v.upper().strip()
        if v_upper not in SUPPORTED_CURRENCIES:
            raise ValueError(
                f"Unsupported currency: {v}. Must be one of: {sorted(SUPPORTED_CURRENCIES)}"
            )
        return v_upper

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


class DepositConfig(BaseSettings):
    """Root configuration for the deposit wizard.

    Environment Variables:
        DEPOSIT_ENV: Environment name (development, staging, production, test)
        DEPOSIT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Example:
        config = DepositConfig(
            api=ApiConfig(base_url="https://bank.example/api/v1/"),
            wizard=WizardConfig(debounce_ms=300),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="DEPOSIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    api: ApiConfig = Field(default_factory=ApiConfig)
    wizard: WizardConfig = Field(default_factory=WizardConfig)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        return self.env == "development"

    @property
    def is_debug(self) -> bool:
        return self.log_level == "DEBUG"


def configure_logging(config: DepositConfig) -> None:
    """Install a structlog logger that drops events below the configured level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
    )
