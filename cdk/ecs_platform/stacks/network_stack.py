from aws_cdk import Stack
from constructs import Construct
from ecs_platform.config import DeployConfig
from ecs_platform.constructs.shared_vpc_construct import SharedVpcImport
from ecs_platform.handles import NetworkHandle


class NetworkStack(Stack):
    def __init__(self, scope: Construct, id: str, *, config: DeployConfig, **kwargs):
        super().__init__(scope, id, **kwargs)

        self.vpc_import = SharedVpcImport(
            self, "SharedVpc",
            env_code=config.env_code.value,
            availability_zones=config.settings.availability_zones
        )

        self.vpc = self.vpc_import.vpc

        self.handle = NetworkHandle(
            vpc=self.vpc,
            public_subnets=self.vpc.public_subnets,
            private_subnets=self.vpc.private_subnets,
        )
