"""Pytest configuration and fixtures.

This module configures pytest to properly resolve imports from the src and
infrastructure packages, and provides factories for workload props and
synthesized templates.
"""

import copy
import sys
from pathlib import Path

import pytest

# Add the project root to Python path so src/infrastructure imports work
project_dir = Path(__file__).parent.parent
if str(project_dir) not in sys.path:
    sys.path.insert(0, str(project_dir))

import aws_cdk as cdk  # noqa: E402
from aws_cdk import assertions  # noqa: E402

from infrastructure.workload import WorkloadConstruct  # noqa: E402
from src.models.workload import WorkloadProps  # noqa: E402


def _merge(base: dict, overrides: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@pytest.fixture
def props_data():
    """Workload definition with a public image on a Fargate cluster."""
    return {
        "vpc": {"name": "ConstructVPC", "subnet": "public"},
        "logger": {"retentionDays": "ONE_MONTH"},
        "registry": {
            "image": "public-image-repository/my-image:latest",
            "type": "public",
        },
        "container": {"name": "ConstructContainer", "port": 3002},
        "fargateService": {
            "serviceName": "ConstructService",
            "desiredCount": 1,
            "assignPublicIp": True,
        },
        "cluster": {"name": "ECS-Cluster", "type": "fargate"},
        "createDashboard": True,
    }


@pytest.fixture
def make_props(props_data):
    """Factory building WorkloadProps from the base definition plus overrides."""

    def _make(**overrides) -> WorkloadProps:
        return WorkloadProps.model_validate(_merge(props_data, overrides))

    return _make


@pytest.fixture
def synth():
    """Factory synthesizing a WorkloadConstruct into an assertions.Template."""

    def _synth(props: WorkloadProps) -> assertions.Template:
        app = cdk.App()
        stack = cdk.Stack(app, "TestStack")
        WorkloadConstruct(stack, "ConstructWorkload3", props)
        return assertions.Template.from_stack(stack)

    return _synth
