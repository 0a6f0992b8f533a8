"""Configuration management for the CDK entry point.

This module provides a centralized configuration system that loads settings
from environment variables (via .env file) with sensible defaults. The
workload itself is described separately, in the YAML file pointed to by
``workload_config_path``.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_DIR = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables with defaults."""

    model_config = SettingsConfigDict(
        # Look for .env file in the project root (parent of src)
        env_file=str(PROJECT_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Target environment (set by the CDK CLI when a profile is in use)
    cdk_default_account: Optional[str] = Field(
        default=None,
        description="AWS account the stack is deployed to",
    )
    cdk_default_region: str = Field(
        default="us-east-1",
        description="AWS region the stack is deployed to",
    )

    # Stack layout
    stack_name: str = Field(
        default="WorkloadStack",
        description="Name of the CloudFormation stack",
    )
    construct_id: str = Field(
        default="workloadConstruct",
        description="Construct id of the workload inside the stack",
    )
    workload_config_path: Path = Field(
        default=PROJECT_DIR / "workload.yaml",
        description="YAML file describing the workload",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level for synthesis output",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is a standard logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


# Singleton instance - import this in other modules
settings = Settings()
