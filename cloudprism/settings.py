"""
CloudPrism Settings - Configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .naming import ApplicationEnvironment

# Find project root (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_AWS_REGION = "eu-central-1"


class CloudPrismSettings(BaseSettings):
    """
    CloudPrism configuration settings.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in current directory
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="CP_",  # All CloudPrism env vars must start with CP_
    )

    # Application identity
    application: str = Field(
        default="cloudprism",
        description="Application name used to derive store names (env: CP_APPLICATION)",
    )

    environment: ApplicationEnvironment | int = Field(
        default=ApplicationEnvironment.SANDBOX,
        description="Deployment environment, by name or number (env: CP_ENVIRONMENT)",
        union_mode="left_to_right",
    )

    # State store configuration
    state_backend: Literal["local", "s3"] = Field(
        default="local",
        description="State store backend: local or s3 (env: CP_STATE_BACKEND)",
    )

    state_path: str = Field(
        default=".",
        description="Base directory of the local state store (env: CP_STATE_PATH)",
    )

    state_name: str = Field(
        default=".statestore",
        description="Directory name of the local state store (env: CP_STATE_NAME)",
    )

    bucket_tags: dict[str, str] = Field(
        default_factory=dict,
        description="Tags for a newly created state bucket, as JSON (env: CP_BUCKET_TAGS)",
    )

    stack_name: str = Field(
        default="dev",
        description="Pulumi stack name (env: CP_STACK_NAME)",
    )

    # Pulumi Configuration
    pulumi_config_passphrase: str = Field(
        default="cloudprism",
        description="Pulumi passphrase for state encryption (env: CP_PULUMI_CONFIG_PASSPHRASE or PULUMI_CONFIG_PASSPHRASE)",
        validation_alias=AliasChoices(
            "CP_PULUMI_CONFIG_PASSPHRASE", "PULUMI_CONFIG_PASSPHRASE"
        ),
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR) (env: CP_LOG_LEVEL)",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, value):
        """Accept environment names ("production") as well as numbers.

        Numbers outside the known environments are kept as plain integers so
        that store names fall back to the generic environment code.
        """
        if isinstance(value, str):
            value = value.strip()
            try:
                value = int(value)
            except ValueError:
                try:
                    return ApplicationEnvironment[value.upper()]
                except KeyError:
                    raise ValueError(f"Unknown environment: {value}")
        if isinstance(value, int):
            try:
                return ApplicationEnvironment(value)
            except ValueError:
                return value
        return value


class AWSCredentials(BaseSettings):
    """
    AWS credentials and region for the S3 state store.

    Read from the standard AWS environment variables when not passed
    explicitly.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    access_key_id: str | None = Field(
        default=None, validation_alias="AWS_ACCESS_KEY_ID"
    )
    secret_access_key: str | None = Field(
        default=None, validation_alias="AWS_SECRET_ACCESS_KEY"
    )
    session_token: str | None = Field(
        default=None, validation_alias="AWS_SESSION_TOKEN"
    )
    region: str = Field(
        default=DEFAULT_AWS_REGION, validation_alias="AWS_DEFAULT_REGION"
    )

    @field_validator("region", mode="before")
    @classmethod
    def default_empty_region(cls, value):
        return value or DEFAULT_AWS_REGION


# Global settings instance
_settings: CloudPrismSettings | None = None


def get_settings() -> CloudPrismSettings:
    """
    Get the global settings instance.

    Creates the settings instance on first call, then returns cached instance.

    Returns:
        CloudPrismSettings instance
    """
    global _settings
    if _settings is None:
        _settings = CloudPrismSettings()
    return _settings


def reload_settings() -> CloudPrismSettings:
    """
    Reload settings from environment/files.

    Useful for testing or when .env file changes.

    Returns:
        Fresh CloudPrismSettings instance
    """
    global _settings
    _settings = CloudPrismSettings()
    return _settings
