"""ECS workload construct.

Builds, from one ``WorkloadProps`` object:
- VPC with public and private subnets
- ECS cluster (Fargate or EC2 capacity) with a private Cloud Map namespace
- Security group opening the configured container port
- Either a load-balanced service fronted by an HTTP API, or a bare service
- CloudWatch dashboard with CPU and memory utilization, unless
  ``createDashboard`` is false
"""

import logging
from typing import List, Optional, Union

from aws_cdk import (
    aws_apigatewayv2 as apigwv2,
    aws_apigatewayv2_integrations as integrations,
    aws_cloudwatch as cloudwatch,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_logs as logs,
    aws_secretsmanager as secretsmanager,
    aws_servicediscovery as servicediscovery,
)
from constructs import Construct

from src.models.workload import (
    ClusterConfig,
    ClusterType,
    ContainerConfig,
    RegistryConfig,
    RegistryType,
    SubnetType,
    VpcConfig,
    WorkloadProps,
)

logger = logging.getLogger(__name__)

TaskDefinition = Union[ecs.FargateTaskDefinition, ecs.Ec2TaskDefinition]
LoadBalancedService = Union[ecs_patterns.ApplicationLoadBalancedFargateService, ecs.Ec2Service]
Service = Union[ecs_patterns.ApplicationLoadBalancedFargateService, ecs.FargateService, ecs.Ec2Service]

CONTAINER_MEMORY_MIB = 512
CONTAINER_CPU = 256
API_NAME = "ecs-api-gateway"


class WorkloadConfigurationError(ValueError):
    """Raised when the workload props cannot be turned into resources."""


class WorkloadConstruct(Construct):
    """Cluster, service and supporting resources for one containerized workload."""

    def __init__(self, scope: Construct, construct_id: str, props: WorkloadProps) -> None:
        super().__init__(scope, construct_id)

        self.api: Optional[apigwv2.HttpApi] = None
        self.dashboard: Optional[cloudwatch.Dashboard] = None

        self.vpc = self._create_vpc(props.vpc)
        self.cluster = self._create_cluster(props.cluster, self.vpc)
        self.security_group = self._create_security_group(self.cluster, props.container)

        if props.expose_api:
            self.service = self._create_load_balanced_service(
                props, self.cluster, self.security_group
            )
            self.api = self._create_api_gateway(self.service, props.api_route_path)
        else:
            task_definition = self._create_task_definition("ECSDesignTask", props.cluster.type)
            self._create_container(props, task_definition)
            self.service = self._create_service(props, self.cluster, task_definition)

        if props.create_dashboard is not False:
            self.dashboard = self._create_cloudwatch_dashboard(self.service)

    def _create_vpc(self, config: VpcConfig) -> ec2.Vpc:
        """Create VPC with public and private subnets."""
        return ec2.Vpc(
            self,
            "MyVpc",
            vpc_name=config.name,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    subnet_type=ec2.SubnetType.PUBLIC,
                    name="Public Subnet",
                    cidr_mask=24,
                ),
                ec2.SubnetConfiguration(
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    name="Private Subnet",
                    cidr_mask=24,
                ),
            ],
        )

    def _create_cluster(self, config: ClusterConfig, vpc: ec2.IVpc) -> ecs.Cluster:
        """Create ECS cluster, adding EC2 capacity when the cluster type asks for it."""
        cluster = ecs.Cluster(
            self,
            "Cluster",
            vpc=vpc,
            enable_fargate_capacity_providers=config.type == ClusterType.FARGATE,
            container_insights_v2=ecs.ContainerInsights.ENABLED,
            cluster_name=config.name,
            default_cloud_map_namespace=ecs.CloudMapNamespaceOptions(
                name="default",
                type=servicediscovery.NamespaceType.DNS_PRIVATE,
            ),
        )

        if config.type == ClusterType.EC2:
            cluster.add_capacity(
                "EC2Capacity",
                instance_type=ec2.InstanceType("t3.medium"),
                min_capacity=1,
                desired_capacity=1,
                max_capacity=10,
            )

        logger.info(f"Created cluster {config.name}")
        return cluster

    def _create_task_definition(self, name: str, cluster_type: ClusterType) -> TaskDefinition:
        if cluster_type == ClusterType.FARGATE:
            return ecs.FargateTaskDefinition(
                self,
                name,
                memory_limit_mib=CONTAINER_MEMORY_MIB,
                cpu=CONTAINER_CPU,
            )
        elif cluster_type == ClusterType.EC2:
            return ecs.Ec2TaskDefinition(
                self,
                name,
                network_mode=ecs.NetworkMode.AWS_VPC,
            )

        raise WorkloadConfigurationError("Invalid task definition type.")

    def _create_container(
        self, props: WorkloadProps, task_definition: TaskDefinition
    ) -> ecs.ContainerDefinition:
        """Add the workload container to a task definition.

        The log group and awslogs driver are only created when logging is
        enabled. The port mapping is always 80; ``props.container.port`` only
        drives the security group ingress rule.
        """
        log_driver = None
        if props.logger.enabled:
            log_group = logs.LogGroup(
                self,
                "LogGroup",
                retention=props.logger.retention_days,
            )
            log_driver = ecs.LogDriver.aws_logs(
                log_group=log_group,
                stream_prefix="my-container",
            )

        container = task_definition.add_container(
            "Container",
            image=self._get_image_from_registry(props.registry),
            container_name=props.container.name,
            memory_limit_mib=CONTAINER_MEMORY_MIB,
            cpu=CONTAINER_CPU,
            logging=log_driver,
            environment=dict(props.environment) or None,
        )

        container.add_port_mappings(ecs.PortMapping(container_port=80))

        return container

    def _get_secret(self, construct_id: str, secret_name: str) -> secretsmanager.ISecret:
        return secretsmanager.Secret.from_secret_name_v2(self, construct_id, secret_name)

    def _get_image_from_registry(self, registry: RegistryConfig) -> ecs.ContainerImage:
        """Resolve the container image, attaching pull credentials for private registries."""
        if registry.type == RegistryType.PRIVATE:
            if registry.has_credentials:
                if registry.secret_arn:
                    registry_secret = secretsmanager.Secret.from_secret_complete_arn(
                        self, "RegistrySecret", registry.secret_arn
                    )
                else:
                    registry_secret = self._get_secret("RegistrySecret", registry.secret_name)
                return ecs.ContainerImage.from_registry(
                    registry.image, credentials=registry_secret
                )

            logger.warning(
                f"Private registry image {registry.image} has no credentials, "
                "resolving it as a public image"
            )

        return ecs.ContainerImage.from_registry(registry.image)

    def _create_security_group(
        self, cluster: ecs.ICluster, container: ContainerConfig
    ) -> ec2.SecurityGroup:
        """Create security group allowing inbound TCP on the container port."""
        security_group = ec2.SecurityGroup(
            self,
            "ServiceSecurityGroup",
            vpc=cluster.vpc,
            allow_all_outbound=True,
        )

        security_group.add_ingress_rule(
            ec2.Peer.ipv4("0.0.0.0/0"),
            ec2.Port.tcp(container.port),
        )

        return security_group

    @staticmethod
    def _deployment_controller(
        strategy: Optional[ecs.DeploymentControllerType],
    ) -> Optional[ecs.DeploymentController]:
        if strategy is None:
            return None
        return ecs.DeploymentController(type=strategy)

    @staticmethod
    def _task_subnets(config: VpcConfig) -> ec2.SubnetSelection:
        if config.subnet == SubnetType.PRIVATE:
            return ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS)
        return ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC)

    def _create_ec2_service(
        self,
        props: WorkloadProps,
        cluster: ecs.ICluster,
        task_definition: TaskDefinition,
        security_groups: Optional[List[ec2.ISecurityGroup]] = None,
    ) -> ecs.Ec2Service:
        return ecs.Ec2Service(
            self,
            "Service",
            cluster=cluster,
            task_definition=task_definition,
            service_name=props.fargate_service.service_name,
            desired_count=props.fargate_service.desired_count,
            assign_public_ip=props.fargate_service.assign_public_ip,
            vpc_subnets=self._task_subnets(props.vpc),
            security_groups=security_groups,
            deployment_controller=self._deployment_controller(props.rollout_strategy),
        )

    def _create_load_balanced_service(
        self,
        props: WorkloadProps,
        cluster: ecs.ICluster,
        security_group: ec2.SecurityGroup,
    ) -> LoadBalancedService:
        """Create the service for the exposed path.

        Fargate clusters get an ALB-fronted Fargate service. EC2 clusters get a
        plain EC2 service, which the API gateway cannot integrate with.
        """
        if props.cluster.type == ClusterType.EC2:
            task_definition = self._create_task_definition("ECSDesignTask", ClusterType.EC2)
            self._create_container(props, task_definition)
            if props.application_secret is not None:
                logger.warning(
                    f"Application secret {props.application_secret.secret_name} "
                    "is not injected into Ec2Service containers"
                )
            service = self._create_ec2_service(
                props, cluster, task_definition, security_groups=[security_group]
            )
            logger.info(f"Created EC2 service {props.fargate_service.service_name}")
            return service

        environment = dict(props.environment)
        if props.application_secret is not None:
            app_secret = self._get_secret(
                "ApplicationSecret", props.application_secret.secret_name
            )
            environment[props.application_secret.variable] = app_secret.secret_value_from_json(
                props.application_secret.json_field
            ).unsafe_unwrap()

        service = ecs_patterns.ApplicationLoadBalancedFargateService(
            self,
            "Service",
            cluster=cluster,
            service_name=props.fargate_service.service_name,
            desired_count=props.fargate_service.desired_count,
            assign_public_ip=props.fargate_service.assign_public_ip,
            task_subnets=self._task_subnets(props.vpc),
            security_groups=[security_group],
            deployment_controller=self._deployment_controller(props.rollout_strategy),
            memory_limit_mib=CONTAINER_MEMORY_MIB,
            cpu=CONTAINER_CPU,
            public_load_balancer=True,
            task_image_options=ecs_patterns.ApplicationLoadBalancedTaskImageOptions(
                image=self._get_image_from_registry(props.registry),
                container_name=props.container.name,
                container_port=props.container.port,
                enable_logging=True,
                log_driver=ecs.LogDriver.aws_logs(stream_prefix="ECSLog"),
                environment=environment or None,
            ),
        )

        logger.info(
            f"Created load balanced Fargate service {props.fargate_service.service_name}"
        )
        return service

    def _create_service(
        self, props: WorkloadProps, cluster: ecs.ICluster, task_definition: TaskDefinition
    ) -> Union[ecs.FargateService, ecs.Ec2Service]:
        """Create a bare ECS service (no load balancer) from a task definition."""
        if props.cluster.type == ClusterType.EC2:
            service = self._create_ec2_service(props, cluster, task_definition)
        else:
            service = ecs.FargateService(
                self,
                "Service",
                cluster=cluster,
                task_definition=task_definition,
                service_name=props.fargate_service.service_name,
                desired_count=props.fargate_service.desired_count,
                assign_public_ip=props.fargate_service.assign_public_ip,
                vpc_subnets=self._task_subnets(props.vpc),
                deployment_controller=self._deployment_controller(props.rollout_strategy),
            )

        logger.info(
            f"Created {props.cluster.type.value} service {props.fargate_service.service_name}"
        )
        return service

    def _create_api_gateway(
        self, service: LoadBalancedService, route_path: str = "/"
    ) -> apigwv2.HttpApi:
        """Create the public HTTP API and route it to the service's load balancer."""
        http_api = apigwv2.HttpApi(self, API_NAME, api_name=API_NAME)

        if isinstance(service, ecs_patterns.ApplicationLoadBalancedFargateService):
            integration_url = f"http://{service.load_balancer.load_balancer_dns_name}"
            if route_path == "/{proxy+}":
                integration_url += "/{proxy}"

            http_api.add_routes(
                path=route_path,
                methods=[apigwv2.HttpMethod.ANY],
                integration=integrations.HttpUrlIntegration(
                    "ecs-alb-integration",
                    integration_url,
                    method=apigwv2.HttpMethod.ANY,
                ),
            )
        else:
            logger.warning("API Gateway integration is not supported for Ec2Service")

        return http_api

    def _create_cloudwatch_dashboard(self, service: Service) -> cloudwatch.Dashboard:
        """Create dashboard with CPU and memory utilization graphs."""
        if isinstance(service, ecs_patterns.ApplicationLoadBalancedFargateService):
            metrics_source = service.service
        else:
            metrics_source = service

        dashboard = cloudwatch.Dashboard(self, "ServiceDashboard")
        dashboard.add_widgets(
            cloudwatch.GraphWidget(
                title="CPU Utilization",
                left=[metrics_source.metric_cpu_utilization()],
            ),
            cloudwatch.GraphWidget(
                title="Memory Utilization",
                left=[metrics_source.metric_memory_utilization()],
            ),
        )

        return dashboard
