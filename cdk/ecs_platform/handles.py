"""Read-only handles a stack exposes to the stacks built on top of it."""

from dataclasses import dataclass
from typing import List

from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecr as ecr,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_rds as rds,
    aws_secretsmanager as secretsmanager,
)


@dataclass(frozen=True)
class NetworkHandle:
    vpc: ec2.IVpc
    public_subnets: List[ec2.ISubnet]
    private_subnets: List[ec2.ISubnet]


@dataclass(frozen=True)
class LoadBalancerHandle:
    load_balancer: elbv2.IApplicationLoadBalancer
    http_listener: elbv2.IApplicationListener
    https_listener: elbv2.IApplicationListener
    green_listener: elbv2.IApplicationListener
    target_security_group: ec2.ISecurityGroup


@dataclass(frozen=True)
class DatabaseHandle:
    client_security_group: ec2.ISecurityGroup
    cluster: rds.IDatabaseCluster
    admin_secret: secretsmanager.ISecret


@dataclass(frozen=True)
class ApplicationHandle:
    cluster: ecs.ICluster
    service: ecs.IBaseService
    repository: ecr.IRepository
