from aws_cdk import (
    CfnOutput,
    Stack
)
from constructs import Construct
from ecs_platform.config import DeployConfig
from ecs_platform.constructs.blue_green_construct import BlueGreenDeploymentConstruct
from ecs_platform.constructs.fargate_service_construct import FargateServiceConstruct
from ecs_platform.handles import (
    ApplicationHandle,
    DatabaseHandle,
    LoadBalancerHandle,
    NetworkHandle,
)


class AppStack(Stack):
    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 network: NetworkHandle,
                 load_balancer: LoadBalancerHandle,
                 database: DatabaseHandle,
                 config: DeployConfig,
                 **kwargs):
        super().__init__(scope, id, **kwargs)

        self.fargate_construct = FargateServiceConstruct(
            self,
            "FargateService",
            vpc=network.vpc,
            config=config,
            security_groups=[
                load_balancer.target_security_group,
                database.client_security_group,
            ]
        )

        # Production traffic on 443, test traffic on the green listener
        self.deployment_construct = BlueGreenDeploymentConstruct(
            self,
            "BlueGreenDeployment",
            config=config,
            service=self.fargate_construct.service,
            blue_target_group=self.fargate_construct.blue_target_group,
            green_target_group=self.fargate_construct.green_target_group,
            prod_listener=load_balancer.https_listener,
            test_listener=load_balancer.green_listener
        )

        self.repository = self.fargate_construct.repository

        CfnOutput(
            self,
            "RepositoryUri",
            value=self.repository.repository_uri,
            description="ECR repository the CI pipeline pushes images to"
        )

        CfnOutput(
            self,
            "ServiceName",
            value=self.fargate_construct.service.service_name,
            description="ECS service deployed by CodeDeploy"
        )

        self.handle = ApplicationHandle(
            cluster=self.fargate_construct.cluster,
            service=self.fargate_construct.service,
            repository=self.repository,
        )
