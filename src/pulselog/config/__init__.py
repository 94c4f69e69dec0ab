"""Configuration management for pulselog.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides.
"""

from pulselog.config.settings import MIN_CAPTURE_INTERVAL, Settings, load_settings

__all__ = ["MIN_CAPTURE_INTERVAL", "Settings", "load_settings"]
