from aws_cdk import (
    aws_ec2 as ec2,
    aws_rds as rds,
    aws_secretsmanager as secretsmanager,
    CfnOutput,
    Duration,
)
from constructs import Construct
from ecs_platform.config import DeployConfig

DB_PORT = 5432
AURORA_POSTGRES_VERSION = "16.2"
INSTANCE_TYPE = "t3.medium"
ADMIN_USERNAME = "postgresAdmin"

# Characters that need escaping in connection strings or shell usage
EXCLUDE_CHARACTERS = "\"@'%$#&().,{_?<≠^>[:;`+*!]}=~|¥/\\"

# (source, target) pairs of the client -> {proxy, rotation} -> instance access chain
INGRESS_CHAIN = (
    ("client", "proxy"),
    ("client", "instance"),
    ("rotation", "instance"),
    ("proxy", "instance"),
)


class RdsConstruct(Construct):
    """
    Aurora PostgreSQL cluster with one writer and one reader.

    Access goes through a chain of security groups, every edge of which only
    opens the PostgreSQL port. Workloads that need the database attach
    ``client_security_group``.

    The subnet group and the instances are on public subnets so the cluster
    can be reached directly from developer machines in non-hardened
    environments.
    """

    @property
    def client_security_group(self) -> ec2.SecurityGroup:
        return self._security_groups["client"]

    @property
    def rds_security_group(self) -> ec2.SecurityGroup:
        return self._security_groups["instance"]

    @property
    def rds_secret(self) -> secretsmanager.ISecret:
        return self._rds_secret

    def __init__(self,
                 scope: Construct,
                 id: str,
                 *,
                 vpc: ec2.IVpc,
                 config: DeployConfig,
                 enable_secret_rotation: bool,
                 rotation_interval_days: int = 3,
                 **kwargs) -> None:
        super().__init__(scope, id, **kwargs)

        prefix = config.prefix

        self._security_groups = {
            "client": ec2.SecurityGroup(
                self,
                "RdsClientSg",
                vpc=vpc,
                security_group_name=f"{prefix}-rds-client",
                description=f"{prefix} RDS Client Security Group.",
                allow_all_outbound=True
            ),
            "rotation": ec2.SecurityGroup(
                self,
                "RdsRotateSecretsSg",
                vpc=vpc,
                security_group_name=f"{prefix}-rds-rotate-secrets",
                description=f"{prefix} RDS Secrets rotate Security Group.",
                allow_all_outbound=True
            ),
            "proxy": ec2.SecurityGroup(
                self,
                "RdsProxySg",
                vpc=vpc,
                security_group_name=f"{prefix}-rds-proxy",
                description=f"{prefix} RDS Proxy Security Group.",
                allow_all_outbound=True
            ),
            "instance": ec2.SecurityGroup(
                self,
                "RdsSg",
                vpc=vpc,
                security_group_name=f"{prefix}-rds",
                description=f"{prefix} RDS Instance Security Group.",
                allow_all_outbound=True
            ),
        }

        for source, target in INGRESS_CHAIN:
            self._security_groups[target].add_ingress_rule(
                peer=self._security_groups[source],
                connection=ec2.Port.tcp(DB_PORT),
                description=f"Allow postgres ({DB_PORT}) from the RDS {source} security group"
            )

        self._rds_secret = secretsmanager.Secret(
            self,
            "RdsAdminSecret",
            secret_name=f"{prefix}/rds/admin-secret",
            description=f"{prefix} RDS Admin User Secret.",
            generate_secret_string=secretsmanager.SecretStringGenerator(
                exclude_characters=EXCLUDE_CHARACTERS,
                generate_string_key="password",
                password_length=32,
                require_each_included_type=True,
                secret_string_template=f'{{"username": "{ADMIN_USERNAME}"}}'
            )
        )

        self.subnet_group = rds.SubnetGroup(
            self,
            "SubnetGroup",
            description=f"The subnet group to be used by Aurora in {prefix}.",
            vpc=vpc,
            subnet_group_name=prefix,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC)
        )

        engine = rds.DatabaseClusterEngine.aurora_postgres(
            version=rds.AuroraPostgresEngineVersion.of(
                AURORA_POSTGRES_VERSION,
                AURORA_POSTGRES_VERSION.split(".")[0]
            )
        )

        self.parameter_group = rds.ParameterGroup(
            self,
            "ParameterGroup",
            engine=engine,
            name=prefix,
            description=f"{prefix} Parameter group for aurora-postgresql."
        )

        instance_type = ec2.InstanceType(INSTANCE_TYPE)

        self.rds_cluster = rds.DatabaseCluster(
            self,
            "RdsCluster",
            engine=engine,
            credentials=rds.Credentials.from_secret(self._rds_secret),
            cluster_identifier=f"{prefix}-cluster",
            deletion_protection=False,
            iam_authentication=True,
            storage_encrypted=True,
            writer=rds.ClusterInstance.provisioned(
                "Writer",
                instance_identifier=f"{prefix}-writer",
                instance_type=instance_type,
                publicly_accessible=True,
                parameter_group=self.parameter_group
            ),
            readers=[
                rds.ClusterInstance.provisioned(
                    "Reader1",
                    instance_identifier=f"{prefix}-reader-1",
                    instance_type=instance_type,
                    publicly_accessible=True,
                    parameter_group=self.parameter_group
                )
            ],
            security_groups=[self.rds_security_group],
            subnet_group=self.subnet_group,
            vpc=vpc
        )

        self.secret_rotation = None
        if enable_secret_rotation:
            self.secret_rotation = secretsmanager.SecretRotation(
                self,
                "DbAdminSecretRotation",
                application=secretsmanager.SecretRotationApplication.POSTGRES_ROTATION_SINGLE_USER,
                secret=self._rds_secret,
                target=self.rds_cluster,
                vpc=vpc,
                automatically_after=Duration.days(rotation_interval_days),
                exclude_characters=EXCLUDE_CHARACTERS,
                security_group=self._security_groups["rotation"],
                vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS)
            )

        CfnOutput(
            self,
            "ClusterEndpoint",
            value=self.rds_cluster.cluster_endpoint.hostname,
            description="Aurora writer endpoint"
        )

        CfnOutput(
            self,
            "AdminSecretArn",
            value=self._rds_secret.secret_arn,
            description="RDS admin credentials secret ARN"
        )
