"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from qrmenu.core.config import get_settings, Settings, EnvironmentMode, setup_logging
from qrmenu.core.exceptions import AppError

__all__ = ["get_settings", "Settings", "EnvironmentMode", "setup_logging", "AppError"]
