from typing import Sequence

from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecr as ecr,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    aws_logs as logs,
    aws_s3 as s3,
    Duration,
    RemovalPolicy,
)
from constructs import Construct
from ecs_platform.config import DeployConfig

CONTAINER_NAME = "app"
CONTAINER_PORT = 8011
HEALTH_CHECK_PATH = "/health"
MAX_IMAGE_COUNT = 3

SESSION_MANAGER_ACTIONS = [
    "ssmmessages:CreateControlChannel",
    "ssmmessages:CreateDataChannel",
    "ssmmessages:OpenControlChannel",
    "ssmmessages:OpenDataChannel",
]


class FargateServiceConstruct(Construct):
    """
    Fargate service released through CodeDeploy blue/green deployments.

    The service starts out registered in the blue target group; the green one
    stays empty until CodeDeploy shifts traffic to it.
    """

    @property
    def service(self) -> ecs.FargateService:
        return self._service

    @property
    def repository(self) -> ecr.Repository:
        return self._repository

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 vpc: ec2.IVpc,
                 config: DeployConfig,
                 security_groups: Sequence[ec2.ISecurityGroup],
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        prefix = config.prefix
        env_file_bucket_name, env_file_key = config.settings.env_file_location

        self.cluster = ecs.Cluster(
            self, "Cluster",
            cluster_name=prefix,
            vpc=vpc
        )

        self.blue_target_group = self._target_group("BlueTargetGroup", vpc, f"{prefix}-blue")
        self.green_target_group = self._target_group("GreenTargetGroup", vpc, f"{prefix}-green")

        self.log_group = logs.LogGroup(
            self, "LogGroup",
            log_group_name=f"/ecs/{prefix}",
            retention=logs.RetentionDays.THREE_MONTHS,
            removal_policy=RemovalPolicy.RETAIN
        )

        logs.MetricFilter(
            self, "MetricFilterForServerError",
            log_group=self.log_group,
            filter_name="server-error",
            filter_pattern=logs.FilterPattern.literal("?ERROR ?error ?Error"),
            metric_namespace=prefix,
            metric_name=f"{prefix}-server-error",
            metric_value="1"
        )

        self._repository = ecr.Repository(
            self, "Repository",
            repository_name=prefix,
            removal_policy=RemovalPolicy.RETAIN,
            lifecycle_rules=[
                ecr.LifecycleRule(
                    rule_priority=1,
                    description=f"Expire images older than {MAX_IMAGE_COUNT} generations",
                    tag_status=ecr.TagStatus.ANY,
                    max_image_count=MAX_IMAGE_COUNT
                )
            ]
        )

        # Execution role: pull image, ship logs, read the .env file
        self.task_execution_role = iam.Role(
            self, "TaskExecutionRole",
            role_name=f"{prefix}-task-execution-role",
            assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AmazonECSTaskExecutionRolePolicy")
            ],
            inline_policies={
                f"{prefix}-task-execution-role-policy": iam.PolicyDocument(
                    statements=[
                        iam.PolicyStatement(
                            effect=iam.Effect.ALLOW,
                            actions=["s3:GetObject"],
                            resources=[config.settings.ecs_env_file_s3_arn]
                        )
                    ]
                )
            }
        )

        # Task role: only what ECS Exec needs
        self.task_role = iam.Role(
            self, "TaskRole",
            role_name=f"{prefix}-task-role",
            assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com"),
            inline_policies={
                f"{prefix}-task-role-policy": iam.PolicyDocument(
                    statements=[
                        iam.PolicyStatement(
                            effect=iam.Effect.ALLOW,
                            actions=SESSION_MANAGER_ACTIONS,
                            resources=["*"]
                        )
                    ]
                )
            }
        )

        self.task_definition = ecs.FargateTaskDefinition(
            self, "TaskDefinition",
            family=prefix,
            cpu=256,
            memory_limit_mib=512,
            task_role=self.task_role,
            execution_role=self.task_execution_role
        )

        env_file_bucket = s3.Bucket.from_bucket_name(self, "EnvFileBucket", env_file_bucket_name)

        self.task_definition.add_container(
            CONTAINER_NAME,
            container_name=CONTAINER_NAME,
            image=ecs.ContainerImage.from_ecr_repository(self._repository, "latest"),
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix="ecs",
                log_group=self.log_group
            ),
            port_mappings=[
                ecs.PortMapping(
                    container_port=CONTAINER_PORT,
                    host_port=CONTAINER_PORT,
                    protocol=ecs.Protocol.TCP
                )
            ],
            environment_files=[
                ecs.EnvironmentFile.from_bucket(env_file_bucket, env_file_key)
            ]
        )

        self._service = ecs.FargateService(
            self, "Service",
            cluster=self.cluster,
            task_definition=self.task_definition,
            service_name=f"{prefix}-service",
            desired_count=1,
            assign_public_ip=True,
            enable_execute_command=True,
            deployment_controller=ecs.DeploymentController(
                type=ecs.DeploymentControllerType.CODE_DEPLOY
            ),
            security_groups=list(security_groups),
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC)
        )

        self._service.attach_to_application_target_group(self.blue_target_group)

    def _target_group(self, id: str, vpc: ec2.IVpc, name: str) -> elbv2.ApplicationTargetGroup:
        return elbv2.ApplicationTargetGroup(
            self, id,
            vpc=vpc,
            target_group_name=name,
            protocol=elbv2.ApplicationProtocol.HTTP,
            port=CONTAINER_PORT,
            target_type=elbv2.TargetType.IP,
            health_check=elbv2.HealthCheck(
                path=HEALTH_CHECK_PATH,
                port=str(CONTAINER_PORT),
                interval=Duration.seconds(30)
            )
        )
