"""
System information collector.

Collects hostname, OS distribution, kernel release and architecture.
"""

from __future__ import annotations

import platform
import socket
from dataclasses import dataclass

import distro

from guest_inventory.collectors.base import BaseCollector, CollectorError


@dataclass(frozen=True)
class DistributionInfo:
    """Operating system distribution details."""

    long_name: str = ""
    short_name: str = ""
    version: str = ""
    kernel: str = ""
    architecture: str = ""


class SystemCollector(BaseCollector):
    """Collects host identity and distribution information."""

    name = "system"
    description = "Hostname, OS distribution, kernel and architecture"

    def collect(self) -> DistributionInfo:
        """Collect distribution information."""
        short_name = distro.id()
        if not short_name:
            raise CollectorError("unable to determine OS distribution")

        return DistributionInfo(
            long_name=distro.name(pretty=True),
            short_name=short_name,
            version=distro.version(),
            kernel=platform.release(),
            architecture=self._get_architecture(),
        )

    def hostname(self) -> str:
        """Return the system hostname."""
        try:
            name = socket.gethostname()
        except OSError as e:
            raise CollectorError(f"gethostname failed: {e}") from e
        if not name:
            raise CollectorError("hostname is empty")
        return name

    def _get_architecture(self) -> str:
        machine = platform.machine()
        # Normalize the names some platforms report
        return {"amd64": "x86_64", "i386": "x86_32", "i686": "x86_32", "arm64": "aarch64"}.get(
            machine.lower(), machine
        )
