"""
Configuration management for terraguard.

This module handles configuration defaults, layering, and lookups.
"""

from .configuration import Configuration
from .defaults import DEFAULT_CONFIGURATION

__all__ = ["Configuration", "DEFAULT_CONFIGURATION"]
