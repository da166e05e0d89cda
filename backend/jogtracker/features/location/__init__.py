"""
Location module.

Components:
- PermissionMonitor: observable prompt/granted/denied state
- LocationFeed: live fix source contract
- ReplayLocationFeed: feed over recorded fixes
"""

from .permission import PermissionState, PermissionMonitor
from .feed import LocationFeed, ReplayLocationFeed, dump_fixes

__all__ = [
    "PermissionState",
    "PermissionMonitor",
    "LocationFeed",
    "ReplayLocationFeed",
    "dump_fixes",
]
