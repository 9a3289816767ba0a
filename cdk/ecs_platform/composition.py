"""
Builds the platform stacks in dependency order.

network -> {load balancer, database} -> app -> ci

Each stack receives the handles of the stacks it builds on and nothing else.
Dependencies are declared explicitly because the network stack is only
referenced through ``Fn::ImportValue`` tokens, which CDK does not track.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import aws_cdk as cdk
from constructs import Construct
from ecs_platform.config import DeployConfig
from ecs_platform.stacks.app_stack import AppStack
from ecs_platform.stacks.ci_stack import CiStack
from ecs_platform.stacks.database_stack import DatabaseStack
from ecs_platform.stacks.load_balancer_stack import LoadBalancerStack
from ecs_platform.stacks.network_stack import NetworkStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformStacks:
    network: NetworkStack
    load_balancer: LoadBalancerStack
    database: DatabaseStack
    app: AppStack
    ci: CiStack

    def in_order(self) -> List[cdk.Stack]:
        return [self.network, self.load_balancer, self.database, self.app, self.ci]


def compose(scope: Construct, config: DeployConfig, env: Optional[cdk.Environment] = None) -> PlatformStacks:
    def stack_kwargs(layer: str) -> dict:
        stack_id = config.stack_id(layer)
        logger.info("Composing stack %s", stack_id)
        return {"id": stack_id, "env": env}

    network_stack = NetworkStack(scope, config=config, **stack_kwargs("vpc"))

    load_balancer_stack = LoadBalancerStack(
        scope,
        network=network_stack.handle,
        config=config,
        **stack_kwargs("elb")
    )
    load_balancer_stack.add_dependency(network_stack)

    database_stack = DatabaseStack(
        scope,
        network=network_stack.handle,
        config=config,
        **stack_kwargs("rds")
    )
    database_stack.add_dependency(network_stack)

    app_stack = AppStack(
        scope,
        network=network_stack.handle,
        load_balancer=load_balancer_stack.handle,
        database=database_stack.handle,
        config=config,
        **stack_kwargs("app")
    )
    app_stack.add_dependency(network_stack)
    app_stack.add_dependency(load_balancer_stack)
    app_stack.add_dependency(database_stack)

    ci_stack = CiStack(
        scope,
        application=app_stack.handle,
        config=config,
        **stack_kwargs("ci")
    )
    ci_stack.add_dependency(app_stack)

    stacks = PlatformStacks(
        network=network_stack,
        load_balancer=load_balancer_stack,
        database=database_stack,
        app=app_stack,
        ci=ci_stack,
    )

    for stack in stacks.in_order():
        cdk.Tags.of(stack).add("Project", config.project_name)
        cdk.Tags.of(stack).add("Environment", config.env_code.value)
        cdk.Tags.of(stack).add("ManagedBy", "CDK-Python")

    return stacks
