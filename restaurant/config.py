"""
Runtime settings for the dashboard.

Settings are a plain Pydantic model so they validate the same way the
domain models do. Entry points (API, CLI) build them from the environment;
tests construct them directly.
"""

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field

ENV_PREFIX = "DASHBOARD_"

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class Settings(BaseModel):
    """Dashboard configuration."""
    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Directory holding the JSON fixtures")
    restaurant_id: str = Field(default="demo-restaurant", description="Restaurant managed by the operator")
    user_email: str = Field(default="owner@demo-restaurant.com")
    active_window_days: int = Field(default=30, gt=0, description="Recency window for active customers")
    popular_items_limit: int = Field(default=5, gt=0)
    recent_activity_limit: int = Field(default=10, gt=0)
    push_fail_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "Settings":
        """
        Build settings from DASHBOARD_* environment variables.

        Unset variables fall back to the field defaults, e.g.
        DASHBOARD_DATA_DIR=/srv/fixtures DASHBOARD_RESTAURANT_ID=r-42
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            if key in environ:
                values[name] = environ[key]
        return cls(**values)
