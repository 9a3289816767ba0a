from aws_cdk import (
    aws_ecr as ecr,
    aws_iam as iam,
)
from constructs import Construct

GITHUB_OIDC_URL = "https://token.actions.githubusercontent.com"
GITHUB_OIDC_HOST = "token.actions.githubusercontent.com"
STS_AUDIENCE = "sts.amazonaws.com"

ECR_PUSH_PULL_ACTIONS = [
    "ecr:GetDownloadUrlForLayer",
    "ecr:BatchGetImage",
    "ecr:BatchCheckLayerAvailability",
    "ecr:PutImage",
    "ecr:InitiateLayerUpload",
    "ecr:UploadLayerPart",
    "ecr:CompleteLayerUpload",
]

ECS_ACTIONS = [
    "ecs:DescribeServices",
    "ecs:DescribeTaskDefinition",
    "ecs:DescribeTasks",
    "ecs:ListTasks",
    "ecs:RegisterTaskDefinition",
]

CODEDEPLOY_ACTIONS = [
    "codedeploy:CreateDeployment",
    "codedeploy:GetApplication",
    "codedeploy:GetApplicationRevision",
    "codedeploy:GetDeployment",
    "codedeploy:GetDeploymentConfig",
    "codedeploy:RegisterApplicationRevision",
    "codedeploy:GetDeploymentGroup",
]


def github_subject(org: str, repository: str, branch: str) -> str:
    return f"repo:{org}/{repository}:ref:refs/heads/{branch}"


class GitHubActionsOidcConstruct(Construct):
    """
    Lets GitHub Actions on one branch push images and start CodeDeploy deployments.

    Credentials are short-lived tokens exchanged through the GitHub OIDC provider.
    """

    @property
    def role(self) -> iam.Role:
        return self._role

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 github_org: str,
                 github_repository: str,
                 branch: str,
                 repository: ecr.IRepository,
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        self.oidc_provider = iam.OpenIdConnectProvider(
            self, "GitHubActionsOidcProvider",
            url=GITHUB_OIDC_URL,
            client_ids=[STS_AUDIENCE],
            thumbprints=["aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"]
        )

        self.subject = github_subject(github_org, github_repository, branch)

        self._role = iam.Role(
            self, "GitHubActionsRole",
            assumed_by=iam.FederatedPrincipal(
                self.oidc_provider.open_id_connect_provider_arn,
                conditions={
                    "StringEquals": {
                        f"{GITHUB_OIDC_HOST}:aud": STS_AUDIENCE,
                    },
                    "StringLike": {
                        f"{GITHUB_OIDC_HOST}:sub": self.subject,
                    },
                },
                assume_role_action="sts:AssumeRoleWithWebIdentity"
            ),
            description=f"Assumed by GitHub Actions on {github_org}/{github_repository}@{branch}"
        )

        # Permission 1: registry login
        self._role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["ecr:GetAuthorizationToken"],
                resources=["*"]
            )
        )

        # Permission 2: push/pull on the application repository only
        self._role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=ECR_PUSH_PULL_ACTIONS,
                resources=[repository.repository_arn]
            )
        )

        # Permission 3: render and register task definitions
        self._role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=ECS_ACTIONS,
                resources=["*"]
            )
        )

        # Permission 4: trigger deployments
        self._role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=CODEDEPLOY_ACTIONS,
                resources=["*"]
            )
        )

        # Permission 5: hand the task roles to ECS
        self._role.add_to_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["iam:PassRole"],
                resources=["*"],
                conditions={
                    "StringEqualsIfExists": {
                        "iam:PassedToService": ["ecs-tasks.amazonaws.com"],
                    },
                }
            )
        )
