import logging
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from dyno_canvas.config import DynoCanvasConfig


class TestDynoCanvasConfig:
    """Test cases for DynoCanvasConfig."""

    def test_default_config(self):
        """Test default configuration values."""
        with patch.dict(os.environ, {"AWS_REGION": "us-west-2"}, clear=True):
            config = DynoCanvasConfig()

            assert config.mode == "aws"
            assert config.region_name == "us-west-2"
            assert config.endpoint_url is None
            assert config.admin_table_name == "dyno-canvas"
            assert config.env_name == "local"
            assert config.read_only is False
            assert config.default_page_limit == 100
            assert config.batch_chunk_size == 25
            assert config.export_max_items is None
            assert config.max_pool_connections == 50
            assert config.retries == 3
            assert config.timeout_seconds == 30.0
            assert config.log_level == "INFO"

    def test_default_region(self):
        with patch.dict(os.environ, {}, clear=True):
            assert DynoCanvasConfig().region_name == "ap-northeast-1"

    def test_config_from_env_vars(self):
        """Test configuration from environment variables."""
        env_vars = {
            "AWS_ACCESS_KEY_ID": "test_key",
            "AWS_SECRET_ACCESS_KEY": "test_secret",
            "AWS_DEFAULT_REGION": "eu-west-1",
            "AWS_PROFILE": "analytics",
            "DYNAMODB_ENDPOINT": "http://localhost:8000",
            "DYNOCANVAS_ADMIN_TABLE_NAME": "canvas-admin",
            "DYNOCANVAS_ENV_NAME": "staging",
            "DYNOCANVAS_READONLY": "TRUE",
            "DYNOCANVAS_EXPORT_MAX_ITEMS": "5000",
            "LOG_LEVEL": "debug",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = DynoCanvasConfig.from_env()

            assert config.mode == "local"
            assert config.aws_access_key_id == "test_key"
            assert config.aws_secret_access_key == "test_secret"
            assert config.region_name == "eu-west-1"
            assert config.profile_name == "analytics"
            assert config.endpoint_url == "http://localhost:8000"
            assert config.admin_table_name == "canvas-admin"
            assert config.env_name == "staging"
            assert config.read_only is True
            assert config.export_max_items == 5000
            assert config.log_level == "DEBUG"

    def test_explicit_mode_overrides_endpoint(self):
        with patch.dict(os.environ, {"DYNAMODB_ENDPOINT": "http://localhost:8000", "DYNOCANVAS_MODE": "aws"}, clear=True):
            assert DynoCanvasConfig().mode == "aws"

    def test_invalid_mode(self):
        with pytest.raises(ValidationError):
            DynoCanvasConfig(mode="cloud")

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            DynoCanvasConfig(log_level="LOUD")

    def test_batch_chunk_size_capped(self):
        with pytest.raises(ValidationError):
            DynoCanvasConfig(batch_chunk_size=26)

    def test_local_development_config(self):
        """Test local development configuration."""
        config = DynoCanvasConfig.for_local_development()

        assert config.is_local is True
        assert config.endpoint_url == "http://localhost:8000"
        assert config.resolved_credentials() == ("local", "local")
        assert config.region_key == "dynamodb-local"
        assert config.log_level == "DEBUG"

    def test_aws_credentials_pass_through(self):
        config = DynoCanvasConfig(mode="aws", aws_access_key_id=None, aws_secret_access_key=None)

        assert config.resolved_credentials() == (None, None)
        assert config.region_key == config.region_name

    def test_pool_key(self):
        aws = DynoCanvasConfig(
            mode="aws", region_name="us-east-1", endpoint_url=None, profile_name=None, aws_access_key_id=None
        )
        local = DynoCanvasConfig(mode="local", region_name="us-east-1", endpoint_url="http://localhost:8000")

        assert aws.pool_key() == "aws|aws|us-east-1|default|default"
        assert local.pool_key() != aws.pool_key()
        assert aws.pool_key() == aws.model_copy().pool_key()

    def test_pool_key_separates_credentials_and_mode(self):
        first = DynoCanvasConfig(mode="aws", region_name="us-east-1", endpoint_url=None, aws_access_key_id="KEY_A")
        second = first.model_copy(update={'aws_access_key_id': "KEY_B"})
        local = first.model_copy(update={'mode': "local"})

        assert first.pool_key() != second.pool_key()
        assert local.pool_key() != first.pool_key()

    def test_available_regions_from_env(self):
        with patch.dict(os.environ, {"DYNOCANVAS_REGIONS": "us-east-1, local ,eu-west-1,us-east-1"}, clear=True):
            config = DynoCanvasConfig(region_name="us-east-1")

            assert config.available_regions() == ["local", "us-east-1", "eu-west-1"]

    def test_available_regions_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert DynoCanvasConfig(region_name="us-east-1").available_regions() == ["us-east-1"]
            local = DynoCanvasConfig(region_name="us-east-1", endpoint_url="http://localhost:8000")
            assert local.available_regions() == ["local", "us-east-1"]

    def test_configure_logging(self):
        config = DynoCanvasConfig(log_level="warning")

        package_logger = config.configure_logging()

        try:
            assert package_logger.name == "dyno_canvas"
            assert package_logger.level == logging.WARNING
        finally:
            package_logger.setLevel(logging.NOTSET)

    def test_validate_assignment(self):
        config = DynoCanvasConfig()

        with pytest.raises(ValidationError):
            config.mode = "cloud"
