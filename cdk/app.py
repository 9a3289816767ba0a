#!/usr/bin/env python3
import logging
import os

import aws_cdk as cdk
from ecs_platform.composition import compose
from ecs_platform.config import load_deploy_config

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = cdk.App()

config = load_deploy_config(os.environ)

env = cdk.Environment(
    account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
    region=os.environ.get("CDK_DEFAULT_REGION")
)

# vpc -> elb / rds -> app -> ci
compose(app, config, env=env)

app.synth()
