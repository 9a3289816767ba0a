from aws_cdk import Stack
from constructs import Construct
from ecs_platform.config import DeployConfig
from ecs_platform.constructs.alb_construct import AlbConstruct
from ecs_platform.handles import LoadBalancerHandle, NetworkHandle


class LoadBalancerStack(Stack):
    def __init__(self, scope: Construct, id: str, *, network: NetworkHandle, config: DeployConfig, **kwargs):
        super().__init__(scope, id, **kwargs)

        self.alb_construct = AlbConstruct(
            self,
            "ApplicationLoadBalancerResources",
            vpc=network.vpc,
            config=config
        )

        self.handle = LoadBalancerHandle(
            load_balancer=self.alb_construct.alb,
            http_listener=self.alb_construct.http_listener,
            https_listener=self.alb_construct.https_listener,
            green_listener=self.alb_construct.green_listener,
            target_security_group=self.alb_construct.target_security_group,
        )
