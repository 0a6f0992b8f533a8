#!/usr/bin/env python3
"""CDK App entry point for the ECS workload stack.

CDK context keys take precedence over settings:
- ``workload_config``: path of the workload YAML file
- ``account`` / ``region``: target environment
"""

import logging
from pathlib import Path

import aws_cdk as cdk

from infrastructure.stack import WorkloadStack
from src.config import settings
from src.models.workload import WorkloadProps

logger = logging.getLogger(__name__)


def workload_config_path(app: cdk.App) -> Path:
    """Return the workload file from CDK context, falling back to settings."""
    return Path(app.node.try_get_context("workload_config") or settings.workload_config_path)


def target_environment(app: cdk.App) -> cdk.Environment:
    """Return the deployment account and region from CDK context or settings."""
    return cdk.Environment(
        account=app.node.try_get_context("account") or settings.cdk_default_account,
        region=app.node.try_get_context("region") or settings.cdk_default_region,
    )


def create_stack(app: cdk.App) -> WorkloadStack:
    """Load the workload definition and add its stack to the app."""
    config_path = workload_config_path(app)
    logger.info(f"Loading workload configuration from {config_path}")
    props = WorkloadProps.from_yaml(config_path)

    return WorkloadStack(
        app,
        settings.stack_name,
        props=props,
        workload_id=settings.construct_id,
        env=target_environment(app),
        description="ECS workload deployment infrastructure",
    )


def main() -> None:
    logging.basicConfig(level=settings.log_level)
    app = cdk.App()
    create_stack(app)
    app.synth()


if __name__ == "__main__":
    main()
