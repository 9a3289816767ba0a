from typing import Sequence

from aws_cdk import (
    aws_ec2 as ec2,
    Fn,
)
from constructs import Construct


def shared_vpc_export_name(env_code: str, resource_name: str) -> str:
    return f"shared-vpc-{env_code}-{resource_name}"


class SharedVpcImport(Construct):
    """
    References the VPC owned by the shared-vpc stacks through their CloudFormation exports.

    Nothing is created here; every id resolves to an ``Fn::ImportValue`` in the consuming template.
    """

    @property
    def vpc(self) -> ec2.IVpc:
        return self._vpc

    def __init__(self, scope: Construct, id: str, *, env_code: str, availability_zones: Sequence[str]) -> None:
        super().__init__(scope, id)

        def import_value(resource_name: str) -> str:
            return Fn.import_value(shared_vpc_export_name(env_code, resource_name))

        # AZs can't be looked up from an imported id at synth time
        self._vpc = ec2.Vpc.from_vpc_attributes(
            self, "Vpc",
            vpc_id=import_value("Vpc"),
            availability_zones=list(availability_zones),
            public_subnet_ids=[
                import_value("PublicSubnet1"),
                import_value("PublicSubnet2"),
            ],
            private_subnet_ids=[
                import_value("PrivateSubnet1"),
                import_value("PrivateSubnet2"),
            ]
        )
