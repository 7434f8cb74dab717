"""
Configuration loading: optional YAML file overlaid with environment variables.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class HttpSettings(BaseModel):
    connect_timeout: float = 15.0
    read_timeout: float = 15.0
    max_retries: int = 3
    base_delay: float = 2.0
    max_delay: float = 30.0
    user_agent: str = "Mozilla/5.0 (HackHub Scraper)"


class RenderSettings(BaseModel):
    headless: bool = True
    browser_type: str = "chromium"
    executable_path: Optional[str] = None
    timeout_ms: float = 5_000
    navigation_timeout_ms: float = 30_000
    listing_settle_delay: float = 3.0
    detail_settle_delay: float = 2.0


class CrawlSettings(BaseModel):
    default_count: int = 10
    max_count: int = 50
    mlh_season: int = 2026
    api_page_delay: float = 1.0


class StreamSettings(BaseModel):
    timeout_s: float = 300.0


class Settings(BaseModel):
    http: HttpSettings = Field(default_factory=HttpSettings)
    render: RenderSettings = Field(default_factory=RenderSettings)
    crawl: CrawlSettings = Field(default_factory=CrawlSettings)
    stream: StreamSettings = Field(default_factory=StreamSettings)


# env var -> (section, key)
_ENV_OVERRIDES = {
    "SCOUT_MAX_COUNT": ("crawl", "max_count"),
    "SCOUT_DEFAULT_COUNT": ("crawl", "default_count"),
    "SCOUT_MLH_SEASON": ("crawl", "mlh_season"),
    "SCOUT_API_PAGE_DELAY": ("crawl", "api_page_delay"),
    "SCOUT_HEADLESS": ("render", "headless"),
    "SCOUT_STREAM_TIMEOUT": ("stream", "timeout_s"),
    "SCOUT_HTTP_MAX_RETRIES": ("http", "max_retries"),
    "CHROME_BIN": ("render", "executable_path"),
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at top level")
    return data


def load_settings(config_path: Optional[str] = None, env: Optional[Dict[str, str]] = None) -> Settings:
    """Load settings from *config_path* (if it exists) then apply env overrides."""
    env = os.environ if env is None else env
    config_path = config_path or env.get("SCOUT_CONFIG", "scout.yml")

    data: Dict[str, Any] = {}
    path = Path(config_path)
    if path.exists():
        data = _read_yaml(path)
        logger.info(f"Loaded configuration from {config_path}")
    else:
        logger.debug(f"Config file not found: {config_path}, using defaults")

    for var, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value not in (None, ""):
            data.setdefault(section, {})[key] = value

    # pydantic coerces the string env values ("false", "25", ...)
    return Settings.model_validate(data)
