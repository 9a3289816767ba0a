from aws_cdk import (
    CfnOutput,
    Stack
)
from constructs import Construct
from ecs_platform.config import DeployConfig
from ecs_platform.constructs.github_oidc_construct import GitHubActionsOidcConstruct
from ecs_platform.handles import ApplicationHandle


class CiStack(Stack):
    def __init__(self, scope: Construct, id: str, *, application: ApplicationHandle, config: DeployConfig, **kwargs):
        super().__init__(scope, id, **kwargs)

        self.github_actions = GitHubActionsOidcConstruct(
            self,
            "GitHubActions",
            github_org=config.github_org,
            github_repository=config.project_name,
            branch=config.settings.branch,
            repository=application.repository
        )

        self.role = self.github_actions.role

        CfnOutput(
            self,
            "GitHubActionsRoleArn",
            value=self.role.role_arn,
            description="Role for aws-actions/configure-aws-credentials"
        )
