"""CDK Stack hosting a single ECS workload.

The stack is a thin shell around ``WorkloadConstruct``: it owns the target
environment (account/region) and publishes the useful endpoints as stack
outputs.
"""

import aws_cdk as cdk
from aws_cdk import aws_ecs_patterns as ecs_patterns
from constructs import Construct

from infrastructure.workload import WorkloadConstruct
from src.models.workload import WorkloadProps


class WorkloadStack(cdk.Stack):
    """Stack wrapping one workload construct."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        props: WorkloadProps,
        workload_id: str = "workloadConstruct",
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.workload = WorkloadConstruct(self, workload_id, props)
        self._create_outputs()

    def _create_outputs(self) -> None:
        """Output cluster name, load balancer DNS and API endpoint where present."""
        cdk.CfnOutput(
            self,
            "ClusterName",
            value=self.workload.cluster.cluster_name,
            description="ECS cluster name",
        )

        service = self.workload.service
        if isinstance(service, ecs_patterns.ApplicationLoadBalancedFargateService):
            cdk.CfnOutput(
                self,
                "LoadBalancerDNS",
                value=service.load_balancer.load_balancer_dns_name,
                description="Application Load Balancer DNS name",
            )

        if self.workload.api is not None:
            cdk.CfnOutput(
                self,
                "ApiEndpoint",
                value=self.workload.api.api_endpoint,
                description="HTTP API endpoint routing to the workload",
            )
