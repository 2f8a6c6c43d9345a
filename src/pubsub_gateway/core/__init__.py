"""
Core configuration for the Pub/Sub Gateway.
"""

from .config import settings, check_required_settings, Settings

__all__ = [
    "settings",
    "check_required_settings",
    "Settings",
]
