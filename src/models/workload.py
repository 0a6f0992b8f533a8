"""Configuration models for the ECS workload construct.

A workload is described by a single immutable ``WorkloadProps`` object that
is consumed once, when the construct is built. The models accept both the
snake_case field names and the camelCase keys used by existing workload
definitions (``exposeApi``, ``fargateService``, ``desiredCount``, ...).
"""

from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

import yaml
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_logs as logs
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClusterType(str, Enum):
    """Capacity mode of the ECS cluster."""

    FARGATE = "fargate"
    EC2 = "ec2"


class SubnetType(str, Enum):
    """Subnet tier the service tasks are placed into."""

    PUBLIC = "public"
    PRIVATE = "private"


class RegistryType(str, Enum):
    """Visibility of the container registry holding the image."""

    PUBLIC = "public"
    PRIVATE = "private"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class ClusterConfig(_FrozenModel):
    """ECS cluster name and capacity mode."""

    name: str = Field(..., description="Name of the ECS cluster")
    type: ClusterType = Field(..., description="Capacity mode (fargate or ec2)")


class ContainerConfig(_FrozenModel):
    """Container name and the single port opened on the security group."""

    name: str = Field(..., description="Container name inside the task definition")
    port: int = Field(..., description="Port opened for inbound traffic")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is within valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v


class RegistryConfig(_FrozenModel):
    """Image reference and optional pull credentials.

    Credentials are only consulted when ``type`` is private. ``secret_arn``
    takes precedence over ``secret_name`` when both are given.
    """

    image: str = Field(..., description="Image reference, e.g. repo/name:tag")
    type: RegistryType = Field(default=RegistryType.PUBLIC)
    secret_name: Optional[str] = Field(
        default=None,
        alias="secretName",
        description="Secrets Manager secret name holding registry credentials",
    )
    secret_arn: Optional[str] = Field(
        default=None,
        alias="secretArn",
        description="Complete ARN of the registry credentials secret",
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.secret_name or self.secret_arn)


class FargateServiceConfig(_FrozenModel):
    """Replica target and networking flags for the ECS service."""

    service_name: str = Field(..., alias="serviceName")
    desired_count: int = Field(..., alias="desiredCount", ge=0)
    assign_public_ip: bool = Field(default=False, alias="assignPublicIp")


class VpcConfig(_FrozenModel):
    name: Optional[str] = Field(default=None, description="VPC name (Name tag)")
    subnet: SubnetType = Field(default=SubnetType.PUBLIC)


class LoggerConfig(_FrozenModel):
    enabled: bool = Field(default=False)
    retention_days: Optional[logs.RetentionDays] = Field(
        default=None, alias="retentionDays"
    )


class ApplicationSecretConfig(_FrozenModel):
    """Environment variable resolved from a JSON field of a secret."""

    secret_name: str = Field(default="appName", alias="secretName")
    json_field: str = Field(default="name", alias="jsonField")
    variable: str = Field(default="APPLICATION_NAME")


class WorkloadProps(_FrozenModel):
    """Complete input for one ``WorkloadConstruct``."""

    cluster: ClusterConfig
    container: ContainerConfig
    registry: RegistryConfig
    fargate_service: FargateServiceConfig = Field(..., alias="fargateService")
    vpc: VpcConfig = Field(default_factory=VpcConfig)
    expose_api: bool = Field(default=False, alias="exposeApi")
    logger: LoggerConfig = Field(default_factory=LoggerConfig)
    rollout_strategy: Optional[ecs.DeploymentControllerType] = Field(
        default=None, alias="rolloutStrategy"
    )
    create_dashboard: Optional[bool] = Field(default=None, alias="createDashboard")
    environment: Dict[str, str] = Field(default_factory=dict)
    application_secret: Optional[ApplicationSecretConfig] = Field(
        default=None, alias="applicationSecret"
    )
    api_route_path: str = Field(default="/", alias="apiRoutePath")

    @field_validator("api_route_path")
    @classmethod
    def validate_api_route_path(cls, v: str) -> str:
        if v not in ("/", "/{proxy+}"):
            raise ValueError("apiRoutePath must be '/' or '/{proxy+}'")
        return v

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "WorkloadProps":
        """Load workload props from a YAML file.

        Args:
            path: Path to the YAML document.

        Returns:
            Validated, immutable WorkloadProps.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)
