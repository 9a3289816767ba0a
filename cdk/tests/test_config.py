"""Tests for deploy environment resolution and the settings table."""

from dataclasses import fields, replace

import pytest

from ecs_platform.config import (
    DEFAULT_ENV_CODE,
    ConfigurationError,
    DeployConfig,
    EnvCode,
    EnvironmentSettings,
    _check_settings_table,
    load_deploy_config,
    resolve,
    settings_for,
    split_s3_object_arn,
)


class TestResolve:
    @pytest.mark.parametrize("raw", ["dev", "tst", "prd"])
    def test_known_codes_resolve_to_themselves(self, raw):
        assert resolve(raw) is EnvCode(raw)

    @pytest.mark.parametrize(
        "raw",
        [None, "", "prod", "PRD", " dev", "staging", "tst\n", "dev,prd"],
    )
    def test_unknown_values_fall_back_to_tst(self, raw):
        assert resolve(raw) is EnvCode.TST
        assert DEFAULT_ENV_CODE is EnvCode.TST

    def test_unknown_value_logs_warning(self, caplog):
        with caplog.at_level("WARNING", logger="ecs_platform.config"):
            resolve("qa")
        assert "qa" in caplog.text

    def test_absent_value_is_silent(self, caplog):
        with caplog.at_level("WARNING", logger="ecs_platform.config"):
            resolve(None)
        assert caplog.text == ""


class TestSettingsTable:
    @pytest.mark.parametrize("code", list(EnvCode))
    def test_every_code_has_fully_populated_settings(self, code):
        settings = settings_for(code)

        assert isinstance(settings, EnvironmentSettings)
        for field in fields(settings):
            value = getattr(settings, field.name)
            assert value is not None
            if isinstance(value, (str, tuple)):
                assert value, field.name

    def test_settings_accept_raw_codes(self):
        assert settings_for("prd") is settings_for(EnvCode.PRD)

    def test_branches(self):
        assert settings_for(EnvCode.PRD).branch == "main"
        assert settings_for(EnvCode.DEV).branch == "develop"
        assert settings_for(EnvCode.TST).branch == "test"

    def test_env_file_points_at_each_environment(self):
        for code in EnvCode:
            bucket, key = settings_for(code).env_file_location
            assert bucket == "shared-tst-cicd"
            assert key == f"ecs/load-test-demo-app-{code.value}/.env"

    def test_rotation_is_set_explicitly(self):
        for code in EnvCode:
            assert settings_for(code).rotate_db_admin_secret is False

    def test_settings_are_immutable(self):
        with pytest.raises(AttributeError):
            settings_for(EnvCode.DEV).branch = "feature"

    def test_missing_environment_is_rejected(self):
        table = {code: settings_for(code) for code in EnvCode if code is not EnvCode.PRD}
        with pytest.raises(ConfigurationError, match="prd"):
            _check_settings_table(table)

    def test_empty_field_is_rejected(self):
        table = {code: settings_for(code) for code in EnvCode}
        table[EnvCode.DEV] = replace(table[EnvCode.DEV], certificate_arn="")
        with pytest.raises(ConfigurationError, match="certificate_arn"):
            _check_settings_table(table)

    def test_bad_env_file_arn_is_rejected(self):
        table = {code: settings_for(code) for code in EnvCode}
        table[EnvCode.TST] = replace(table[EnvCode.TST], ecs_env_file_s3_arn="s3://bucket/.env")
        with pytest.raises(ConfigurationError):
            _check_settings_table(table)


class TestSplitS3ObjectArn:
    def test_splits_bucket_and_key(self):
        assert split_s3_object_arn("arn:aws:s3:::bucket/a/b/.env") == ("bucket", "a/b/.env")

    @pytest.mark.parametrize("arn", ["arn:aws:s3:::bucket", "arn:aws:s3:::/key", "bucket/key"])
    def test_rejects_incomplete_arns(self, arn):
        with pytest.raises(ConfigurationError):
            split_s3_object_arn(arn)


class TestDeployConfig:
    def test_prefix_and_stack_ids(self):
        config = DeployConfig.for_env(EnvCode.PRD)

        assert config.prefix == "load-test-demo-prd"
        assert config.stack_id("elb") == "load-test-demo-elb-prd"

    def test_load_reads_deploy_env(self):
        config = load_deploy_config({"DEPLOY_ENV": "prd"})

        assert config.env_code is EnvCode.PRD
        assert config.settings == settings_for(EnvCode.PRD)

    def test_load_without_deploy_env_uses_default(self):
        config = load_deploy_config({})

        assert config.env_code is EnvCode.TST
        assert config.settings == settings_for(EnvCode.TST)
