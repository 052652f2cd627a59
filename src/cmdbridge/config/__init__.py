"""Configuration management for cmdbridge.

Loads and validates YAML-based configuration with Pydantic models.
Environment variables override values from the file.
"""

from cmdbridge.config.settings import BridgeConfig, Settings, load_settings

__all__ = ["BridgeConfig", "Settings", "load_settings"]
