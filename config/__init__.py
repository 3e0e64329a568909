"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    JsonFileStorage: Snapshot storage for the application state
"""

from config.settings import settings, get_settings, Settings
from config.storage import JsonFileStorage

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Storage
    "JsonFileStorage",
]
