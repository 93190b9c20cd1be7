"""
Host data collectors for Guest Inventory.

Each collector reads one kind of information from the running system.
"""

from __future__ import annotations

from guest_inventory.collectors.base import BaseCollector, CollectorError
from guest_inventory.collectors.packages import (
    PackageQueryResult,
    Packages,
    PackagesCollector,
    PkgInfo,
)
from guest_inventory.collectors.system import DistributionInfo, SystemCollector

__all__ = [
    "BaseCollector",
    "CollectorError",
    "DistributionInfo",
    "PackageQueryResult",
    "Packages",
    "PackagesCollector",
    "PkgInfo",
    "SystemCollector",
]
