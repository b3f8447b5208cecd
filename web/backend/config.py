#!/usr/bin/env python3
"""
Configuration management for the match engine web application.

Reads the same config.yaml as the nightly driver, with the web-specific
environment overrides applied on top.
"""

import os
from pathlib import Path
from functools import lru_cache

from core.config_loader import AppConfig, load_config


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


@lru_cache()
def get_config() -> AppConfig:
    """
    Get application configuration with caching.

    Returns:
        AppConfig: The application configuration.
    """
    config = load_config(str(get_project_root() / 'config.yaml'))

    # Web server overrides
    if 'WEB_HOST' in os.environ:
        config.web.host = os.environ['WEB_HOST']
    if 'WEB_PORT' in os.environ:
        config.web.port = int(os.environ['WEB_PORT'])

    return config
