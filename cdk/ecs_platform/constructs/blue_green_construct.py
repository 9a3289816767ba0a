from aws_cdk import (
    aws_codedeploy as codedeploy,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    Duration,
)
from constructs import Construct
from ecs_platform.config import DeployConfig

APPROVAL_WAIT_MINUTES = 30
TERMINATION_WAIT_MINUTES = 30


class BlueGreenDeploymentConstruct(Construct):
    """
    CodeDeploy wiring for an ECS service.

    CodeDeploy drives each release: replacement tasks come up in the green
    target group behind the test listener, wait up to
    ``APPROVAL_WAIT_MINUTES`` for approval, take over the prod listener and
    the old tasks are terminated. A failed deployment is rolled back.
    """

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 config: DeployConfig,
                 service: ecs.IBaseService,
                 blue_target_group: elbv2.IApplicationTargetGroup,
                 green_target_group: elbv2.IApplicationTargetGroup,
                 prod_listener: elbv2.IApplicationListener,
                 test_listener: elbv2.IApplicationListener,
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        prefix = config.prefix

        self.application = codedeploy.EcsApplication(
            self, "CodeDeploy",
            application_name=prefix
        )

        # The deployment group attaches AWSCodeDeployRoleForECS itself
        service_role = iam.Role(
            self, "CodeDeployServiceRole",
            role_name=f"{prefix}-codedeploy-service-role",
            assumed_by=iam.ServicePrincipal("codedeploy.amazonaws.com")
        )

        self.deployment_group = codedeploy.EcsDeploymentGroup(
            self, "DeploymentGroup",
            application=self.application,
            deployment_group_name=f"{prefix}-group1",
            role=service_role,
            service=service,
            blue_green_deployment_config=codedeploy.EcsBlueGreenDeploymentConfig(
                blue_target_group=blue_target_group,
                green_target_group=green_target_group,
                listener=prod_listener,
                test_listener=test_listener,
                deployment_approval_wait_time=Duration.minutes(APPROVAL_WAIT_MINUTES),
                termination_wait_time=Duration.minutes(TERMINATION_WAIT_MINUTES)
            ),
            deployment_config=codedeploy.EcsDeploymentConfig.ALL_AT_ONCE,
            auto_rollback=codedeploy.AutoRollbackConfig(
                failed_deployment=True,
                stopped_deployment=False,
                deployment_in_alarm=False
            )
        )
