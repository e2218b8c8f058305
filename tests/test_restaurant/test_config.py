"""
Tests for runtime settings.
"""

import pytest
from pathlib import Path
from pydantic import ValidationError

from restaurant.config import DEFAULT_DATA_DIR, Settings


class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_defaults(self):
        """Test settings without any environment."""
        settings = Settings.from_env({})

        assert settings.data_dir == DEFAULT_DATA_DIR
        assert settings.restaurant_id == "demo-restaurant"
        assert settings.active_window_days == 30
        assert settings.popular_items_limit == 5
        assert settings.recent_activity_limit == 10

    def test_environment_overrides(self):
        """Test DASHBOARD_* variables are parsed into typed fields."""
        settings = Settings.from_env({
            "DASHBOARD_DATA_DIR": "/srv/fixtures",
            "DASHBOARD_RESTAURANT_ID": "r-42",
            "DASHBOARD_ACTIVE_WINDOW_DAYS": "14",
            "DASHBOARD_PUSH_FAIL_RATE": "0.25",
            "UNRELATED": "ignored",
        })

        assert settings.data_dir == Path("/srv/fixtures")
        assert settings.restaurant_id == "r-42"
        assert settings.active_window_days == 14
        assert settings.push_fail_rate == 0.25

    def test_invalid_value_rejected(self):
        """Test out-of-range values fail validation."""
        with pytest.raises(ValidationError):
            Settings.from_env({"DASHBOARD_PUSH_FAIL_RATE": "2"})
