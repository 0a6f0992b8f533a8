"""Configuration models for the workload construct."""

from .workload import (
    ApplicationSecretConfig,
    ClusterConfig,
    ClusterType,
    ContainerConfig,
    FargateServiceConfig,
    LoggerConfig,
    RegistryConfig,
    RegistryType,
    SubnetType,
    VpcConfig,
    WorkloadProps,
)

__all__ = [
    "ApplicationSecretConfig",
    "ClusterConfig",
    "ClusterType",
    "ContainerConfig",
    "FargateServiceConfig",
    "LoggerConfig",
    "RegistryConfig",
    "RegistryType",
    "SubnetType",
    "VpcConfig",
    "WorkloadProps",
]
