"""
GapScope Data Module
====================

Configuration and the App Store review source.
"""

from .config import GapScopeConfig, load_config
from .app_store_client import AppInfo, AppStoreClient, AppStoreError

__all__ = [
    "GapScopeConfig",
    "load_config",
    "AppInfo",
    "AppStoreClient",
    "AppStoreError",
]
