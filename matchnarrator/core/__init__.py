"""
Core Module
Zentrale Konfiguration und Settings
"""

from .config import APIConfig, Settings, settings

__all__ = ["settings", "Settings", "APIConfig"]
