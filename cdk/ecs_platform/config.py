"""
Deployment configuration for the load-test-demo platform.

The deploy environment is chosen by the ``DEPLOY_ENV`` variable and mapped to
a static settings record. Everything downstream receives a ``DeployConfig``
explicitly; nothing below ``app.py`` reads the process environment.
"""

import logging
import os
from dataclasses import dataclass, fields
from enum import Enum
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

PROJECT_NAME = "load-test-demo"
GITHUB_ORG = "penysho"


class ConfigurationError(Exception):
    """Raised when the static environment table is inconsistent."""


class EnvCode(str, Enum):
    DEV = "dev"
    TST = "tst"
    PRD = "prd"


DEFAULT_ENV_CODE = EnvCode.TST


@dataclass(frozen=True)
class EnvironmentSettings:
    hosted_zone_id: str
    hosted_zone_name: str
    api_record_name: str
    certificate_arn: str
    default_elb_security_group_id: str
    ecs_env_file_s3_arn: str
    branch: str
    availability_zones: Tuple[str, ...]
    rotate_db_admin_secret: bool
    db_secret_rotation_days: int

    @property
    def env_file_location(self) -> Tuple[str, str]:
        """Bucket name and object key of ``ecs_env_file_s3_arn``."""
        return split_s3_object_arn(self.ecs_env_file_s3_arn)


def split_s3_object_arn(arn: str) -> Tuple[str, str]:
    prefix = "arn:aws:s3:::"
    if not arn.startswith(prefix):
        raise ConfigurationError(f"Not an S3 object ARN: {arn}")
    bucket, _, key = arn[len(prefix):].partition("/")
    if not bucket or not key:
        raise ConfigurationError(f"S3 object ARN must name both a bucket and a key: {arn}")
    return bucket, key


_CERTIFICATE_ARN = (
    "arn:aws:acm:ap-northeast-1:551152530614:"
    "certificate/78e1479b-2bb2-4f89-8836-a8ff91227dfb"
)

_SETTINGS = {
    EnvCode.DEV: EnvironmentSettings(
        hosted_zone_id="Z1022019Y95GQ6B89EE1",
        hosted_zone_name="pesh-igpjt.com",
        api_record_name="load-test-api-dev.pesh-igpjt.com",
        certificate_arn=_CERTIFICATE_ARN,
        default_elb_security_group_id="sg-0781f96eb35b3aaad",
        ecs_env_file_s3_arn="arn:aws:s3:::shared-tst-cicd/ecs/load-test-demo-app-dev/.env",
        branch="develop",
        availability_zones=("ap-northeast-1a", "ap-northeast-1c"),
        rotate_db_admin_secret=False,
        db_secret_rotation_days=3,
    ),
    EnvCode.TST: EnvironmentSettings(
        hosted_zone_id="Z1022019Y95GQ6B89EE1",
        hosted_zone_name="pesh-igpjt.com",
        api_record_name="load-test-api-tst.pesh-igpjt.com",
        certificate_arn=_CERTIFICATE_ARN,
        default_elb_security_group_id="sg-0781f96eb35b3aaad",
        ecs_env_file_s3_arn="arn:aws:s3:::shared-tst-cicd/ecs/load-test-demo-app-tst/.env",
        branch="test",
        availability_zones=("ap-northeast-1a", "ap-northeast-1c"),
        rotate_db_admin_secret=False,
        db_secret_rotation_days=3,
    ),
    EnvCode.PRD: EnvironmentSettings(
        hosted_zone_id="Z1022019Y95GQ6B89EE1",
        hosted_zone_name="pesh-igpjt.com",
        api_record_name="load-test-api.pesh-igpjt.com",
        certificate_arn=_CERTIFICATE_ARN,
        default_elb_security_group_id="sg-0781f96eb35b3aaad",
        ecs_env_file_s3_arn="arn:aws:s3:::shared-tst-cicd/ecs/load-test-demo-app-prd/.env",
        branch="main",
        availability_zones=("ap-northeast-1a", "ap-northeast-1c"),
        rotate_db_admin_secret=False,
        db_secret_rotation_days=3,
    ),
}


def _check_settings_table(table: Mapping[EnvCode, EnvironmentSettings]) -> None:
    missing = [code.value for code in EnvCode if code not in table]
    if missing:
        raise ConfigurationError(f"No settings defined for environments: {', '.join(missing)}")

    for code, settings in table.items():
        for field in fields(settings):
            value = getattr(settings, field.name)
            # bools and ints are legitimately falsy
            if isinstance(value, (str, tuple)) and not value:
                raise ConfigurationError(f"Setting '{field.name}' is empty for environment '{code.value}'")
        if settings.rotate_db_admin_secret and settings.db_secret_rotation_days < 1:
            raise ConfigurationError(f"Rotation interval must be at least one day for '{code.value}'")
        split_s3_object_arn(settings.ecs_env_file_s3_arn)


_check_settings_table(_SETTINGS)


def resolve(raw: Optional[str]) -> EnvCode:
    """Map a raw ``DEPLOY_ENV`` value onto an environment code, never failing."""
    try:
        return EnvCode(raw)
    except ValueError:
        if raw:
            logger.warning(
                "Unknown deploy environment '%s', falling back to '%s'",
                raw,
                DEFAULT_ENV_CODE.value,
            )
        return DEFAULT_ENV_CODE


def settings_for(code: EnvCode) -> EnvironmentSettings:
    return _SETTINGS[EnvCode(code)]


@dataclass(frozen=True)
class DeployConfig:
    """Everything a stack needs to know about where it is being deployed."""

    env_code: EnvCode
    settings: EnvironmentSettings
    project_name: str = PROJECT_NAME
    github_org: str = GITHUB_ORG

    @property
    def prefix(self) -> str:
        return f"{self.project_name}-{self.env_code.value}"

    def stack_id(self, layer: str) -> str:
        return f"{self.project_name}-{layer}-{self.env_code.value}"

    @classmethod
    def for_env(cls, code: EnvCode) -> "DeployConfig":
        return cls(env_code=code, settings=settings_for(code))


def load_deploy_config(environ: Mapping[str, str] = os.environ) -> DeployConfig:
    code = resolve(environ.get("DEPLOY_ENV"))
    logger.info("Resolved deploy environment '%s'", code.value)
    return DeployConfig.for_env(code)
