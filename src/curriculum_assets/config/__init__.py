"""Configuration management for Curriculum Assets."""

from curriculum_assets.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
