"""Tests for configuration validation."""

import pytest

from pawmap.core.config import BackendConfig, Config, validate_config
from pawmap.core.geo import Coordinate


@pytest.fixture
def valid_config():
    return Config(
        backend=BackendConfig(
            url="https://example.supabase.co",
            api_key="anon-key",
        ),
    )


class TestValidateConfig:
    """Tests for validate_config()."""

    def test_valid_config(self, valid_config):
        result = validate_config(valid_config)
        assert result.valid is True
        assert result.errors == []

    def test_missing_url_is_error(self, valid_config):
        valid_config.backend.url = ""
        result = validate_config(valid_config)
        assert result.valid is False
        assert [e.field for e in result.critical_errors] == ["backend.url"]

    def test_placeholder_url_is_error(self, valid_config):
        valid_config.backend.url = "${PAWMAP_BACKEND_URL}"
        assert validate_config(valid_config).valid is False

    def test_non_http_url_is_error(self, valid_config):
        valid_config.backend.url = "ftp://example.com"
        result = validate_config(valid_config)
        assert result.valid is False
        assert "http" in result.critical_errors[0].message

    def test_unresolved_api_key_is_warning(self, valid_config):
        valid_config.backend.api_key = "${secret:backend-key}"
        result = validate_config(valid_config)
        assert result.valid is True
        assert [w.field for w in result.warnings] == ["backend.api_key"]

    def test_fallback_limit_is_warning(self, valid_config):
        valid_config.backend.fallback_row_limit = 50
        result = validate_config(valid_config)
        assert result.valid is True
        assert [w.field for w in result.warnings] == ["backend.fallback_row_limit"]

    def test_zero_fallback_limit_is_error(self, valid_config):
        valid_config.backend.fallback_row_limit = 0
        assert validate_config(valid_config).valid is False

    @pytest.mark.parametrize("field_name", [
        "default_radius_km",
        "cluster_radius_degrees",
        "region_delta",
        "tracking_interval_seconds",
    ])
    def test_non_positive_settings_are_errors(self, valid_config, field_name):
        setattr(valid_config, field_name, 0)
        result = validate_config(valid_config)
        assert result.valid is False
        assert result.critical_errors[0].field == field_name

    def test_negative_debounce_is_error(self, valid_config):
        valid_config.filter_debounce_seconds = -0.1
        assert validate_config(valid_config).valid is False

    def test_zero_debounce_is_allowed(self, valid_config):
        valid_config.filter_debounce_seconds = 0
        assert validate_config(valid_config).valid is True

    def test_null_island_center_is_error(self, valid_config):
        valid_config.default_center = Coordinate(0.0, 0.0)
        result = validate_config(valid_config)
        assert result.critical_errors[0].field == "default_center"

    def test_valid_center(self, valid_config):
        valid_config.default_center = Coordinate(40.0, -74.0)
        assert validate_config(valid_config).valid is True
