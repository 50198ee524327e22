"""Configuration package."""

from expense_tracker.config.settings import (
    AppSettings,
    Settings,
    StorageSettings,
    get_settings,
)
from expense_tracker.config.session import SessionSettings

__all__ = [
    "AppSettings",
    "SessionSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
]
