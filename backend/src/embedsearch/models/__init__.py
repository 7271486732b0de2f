"""
Database models for embedsearch.

This package contains the SQLAlchemy models backing the plugin registry.
"""

from .base import Base
from .plugin_record import PluginRecord

__all__ = ["Base", "PluginRecord"]
