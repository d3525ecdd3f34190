"""Configuration module for RecordCrate."""

from .settings import (
    ApiSettings,
    ChartSettings,
    DatabaseSettings,
    GeminiSettings,
    HttpSettings,
    ObservabilitySettings,
    Settings,
    SpotifySettings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "ChartSettings",
    "DatabaseSettings",
    "GeminiSettings",
    "HttpSettings",
    "ObservabilitySettings",
    "Settings",
    "SpotifySettings",
    "get_settings",
]
