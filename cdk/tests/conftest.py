"""Shared fixtures for synthesizing the platform stacks in tests."""

import os

import pytest
from aws_cdk import App
from aws_cdk.assertions import Template

from ecs_platform.composition import compose
from ecs_platform.config import DeployConfig, EnvCode


@pytest.fixture(scope="session", autouse=True)
def configure_test_environment():
    """Keep synthesis offline and independent of the caller's shell."""
    test_env = {
        "CDK_DISABLE_VERSION_CHECK": "true",
        "JSII_SILENCE_WARNING_UNTESTED_NODE_VERSION": "true",
    }

    for key, value in test_env.items():
        if key not in os.environ:
            os.environ[key] = value


@pytest.fixture
def cdk_app():
    """Create a fresh CDK App instance for each test."""
    return App()


@pytest.fixture(scope="session")
def prd_config():
    return DeployConfig.for_env(EnvCode.PRD)


@pytest.fixture(scope="session")
def dev_config():
    return DeployConfig.for_env(EnvCode.DEV)


@pytest.fixture(scope="module")
def prd_stacks(prd_config):
    return compose(App(), prd_config)


@pytest.fixture(scope="module")
def prd_templates(prd_stacks):
    return {
        "network": Template.from_stack(prd_stacks.network),
        "load_balancer": Template.from_stack(prd_stacks.load_balancer),
        "database": Template.from_stack(prd_stacks.database),
        "app": Template.from_stack(prd_stacks.app),
        "ci": Template.from_stack(prd_stacks.ci),
    }
