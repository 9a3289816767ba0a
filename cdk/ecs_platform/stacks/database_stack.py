from aws_cdk import Stack
from constructs import Construct
from ecs_platform.config import DeployConfig
from ecs_platform.constructs.rds_construct import RdsConstruct
from ecs_platform.handles import DatabaseHandle, NetworkHandle


class DatabaseStack(Stack):

    def __init__(self, scope:Construct, id:str, *, network:NetworkHandle, config:DeployConfig, **kwargs):
        super().__init__(scope, id, **kwargs)

        settings = config.settings

        self.rds_construct = RdsConstruct(
            self,
            "AuroraCluster",
            vpc=network.vpc,
            config=config,
            enable_secret_rotation=settings.rotate_db_admin_secret,
            rotation_interval_days=settings.db_secret_rotation_days
        )

        self.handle = DatabaseHandle(
            client_security_group=self.rds_construct.client_security_group,
            cluster=self.rds_construct.rds_cluster,
            admin_secret=self.rds_construct.rds_secret,
        )
