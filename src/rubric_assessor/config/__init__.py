"""
Configuration module.

Handles loading and validation of storage and feedback settings.
"""

from .loader import ConfigLoader
from .models import AppConfig, FeedbackSettings, StorageSettings

__all__ = ["ConfigLoader", "AppConfig", "FeedbackSettings", "StorageSettings"]
