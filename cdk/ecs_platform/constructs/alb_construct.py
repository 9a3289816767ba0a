from aws_cdk import (
    aws_ec2 as ec2,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
    CfnOutput,
    Duration,
    Stack
)
from constructs import Construct
from ecs_platform.config import DeployConfig

HTTP_PORT = 80
HTTPS_PORT = 443
GREEN_LISTENER_PORT = 10443


def deny_by_default() -> elbv2.ListenerAction:
    return elbv2.ListenerAction.fixed_response(403, content_type="text/plain")


class AlbConstruct(Construct):
    """
    Shared ALB scaffold for ECS platform applications.

    All listeners answer 403 until a deployment switches their default action
    to a target group, so no routing is declared here.
    """

    @property
    def target_security_group(self) -> ec2.SecurityGroup:
        return self._target_security_group

    def __init__(self, scope: Construct, id: str, *, vpc: ec2.IVpc, config: DeployConfig, **kwargs):
        super().__init__(scope, id, **kwargs)

        prefix = config.prefix
        settings = config.settings

        self._elb_security_group = ec2.SecurityGroup(
            self,
            "ElbSecurityGroup",
            vpc=vpc,
            security_group_name=f"{prefix}-elb",
            allow_all_outbound=True,
            description="This security group is allowed in the security group of the resource set in the Target Group."
        )

        self._target_security_group = ec2.SecurityGroup(
            self,
            "ElbTargetSecurityGroup",
            vpc=vpc,
            security_group_name=f"{prefix}-elb-target",
            allow_all_outbound=True,
            description="This security group allows interaction with the ELBs set up in the target group."
        )

        self._target_security_group.add_ingress_rule(
            peer=self._elb_security_group,
            connection=ec2.Port.all_traffic(),
            description="Allow all traffic from the ALB"
        )

        self.alb = elbv2.ApplicationLoadBalancer(
            self,
            "LoadBalancer",
            vpc=vpc,
            load_balancer_name=prefix,
            internet_facing=True,
            security_group=self._elb_security_group,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
            idle_timeout=Duration.seconds(60),
            deletion_protection=False
        )

        # Ingress on 80/443 is granted by the account-wide default ELB group
        self.alb.add_security_group(
            ec2.SecurityGroup.from_security_group_id(
                self, "DefaultElbSecurityGroup", settings.default_elb_security_group_id
            )
        )

        self.https_listener = self.alb.add_listener(
            "Elb443Listener",
            port=HTTPS_PORT,
            protocol=elbv2.ApplicationProtocol.HTTPS,
            certificates=[elbv2.ListenerCertificate.from_arn(settings.certificate_arn)],
            default_action=deny_by_default(),
            open=False
        )

        self.http_listener = self.alb.add_listener(
            "Elb80Listener",
            port=HTTP_PORT,
            protocol=elbv2.ApplicationProtocol.HTTP,
            default_action=deny_by_default(),
            open=False
        )

        self.green_listener = self.alb.add_listener(
            "GreenListener",
            port=GREEN_LISTENER_PORT,
            protocol=elbv2.ApplicationProtocol.HTTP,
            default_action=deny_by_default(),
            open=False
        )

        hosted_zone = route53.HostedZone.from_hosted_zone_attributes(
            self,
            "HostedZone",
            hosted_zone_id=settings.hosted_zone_id,
            zone_name=settings.hosted_zone_name
        )

        route53.ARecord(
            self,
            "RecordSet",
            zone=hosted_zone,
            record_name=settings.api_record_name,
            target=route53.RecordTarget.from_alias(route53_targets.LoadBalancerTarget(self.alb))
        )

        stack_name = Stack.of(self).stack_name
        outputs = {
            "LoadBalancerArn": (
                self.alb.load_balancer_arn,
                "This is the ARN of the ALB for ECS Platform applications."
            ),
            "Elb80ListenerArn": (
                self.http_listener.listener_arn,
                "Listener ARN for port 80 used by ALB in ECS Platform applications."
            ),
            "Elb443ListenerArn": (
                self.https_listener.listener_arn,
                "Listener ARN for port 443 used by ALB in ECS Platform applications."
            ),
            "GreenListenerArn": (
                self.green_listener.listener_arn,
                "This is the ARN of the listener for the Green environment used in the ALB of ECS Platform applications."
            ),
            "ElbTargetSecurityGroupId": (
                self._target_security_group.security_group_id,
                "Security group id to attach to resources registered in the ALB target groups."
            ),
        }
        for key, (value, description) in outputs.items():
            CfnOutput(
                self,
                key,
                value=value,
                description=description,
                export_name=f"{stack_name}-{key}"
            )
