"""
Package inventory collector with multi-distro support.

Reports installed packages and available updates from RPM, dpkg/APT,
YUM/DNF and Zypper, plus the language package managers gem and pip.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, Callable

from guest_inventory.collectors.base import BaseCollector, CollectorError

RPM_QUERY_FORMAT = "%{NAME} %{ARCH} %{VERSION}-%{RELEASE}\n"
DPKG_QUERY_FORMAT = "${Package} ${Architecture} ${Version}\n"


@dataclass(frozen=True)
class PkgInfo:
    """A single package entry."""

    name: str
    arch: str
    version: str

    def to_dict(self) -> dict[str, str]:
        return {"Name": self.name, "Arch": self.arch, "Version": self.version}


@dataclass(frozen=True)
class Packages:
    """Package entries grouped by the package manager that reported them."""

    yum: tuple[PkgInfo, ...] = ()
    rpm: tuple[PkgInfo, ...] = ()
    apt: tuple[PkgInfo, ...] = ()
    deb: tuple[PkgInfo, ...] = ()
    zypper: tuple[PkgInfo, ...] = ()
    gem: tuple[PkgInfo, ...] = ()
    pip: tuple[PkgInfo, ...] = ()

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        """Convert to a JSON-ready dictionary, omitting empty groups."""
        return {
            f.name: [pkg.to_dict() for pkg in getattr(self, f.name)]
            for f in fields(self)
            if getattr(self, f.name)
        }

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))

    def count(self) -> int:
        return sum(len(getattr(self, f.name)) for f in fields(self))


@dataclass(frozen=True)
class PackageQueryResult:
    """Outcome of querying every package manager present on the host."""

    packages: Packages = field(default_factory=Packages)
    errors: tuple[str, ...] = ()
    succeeded: tuple[str, ...] = ()

    @property
    def all_failed(self) -> bool:
        """True when at least one manager was queried and none answered."""
        return bool(self.errors) and not self.succeeded


class PackagesCollector(BaseCollector):
    """Collects installed packages and pending updates."""

    name = "packages"
    description = "Installed packages and available package updates"

    def collect(self) -> PackageQueryResult:
        """Collect the installed package inventory."""
        return self.installed()

    def installed(self) -> PackageQueryResult:
        """
        Query every package manager present for installed packages.

        Returns:
            The packages found, one error entry per manager whose query
            failed, and the groups whose query succeeded. Managers that
            are not installed appear in neither list.
        """
        queries: dict[str, tuple[str, Callable[[], list[PkgInfo]]]] = {
            "rpm": ("rpm", self._get_rpm_installed),
            "deb": ("dpkg-query", self._get_deb_installed),
            "gem": ("gem", self._get_gem_installed),
            "pip": (self._pip_command(), self._get_pip_installed),
        }
        return self._run_queries(queries)

    def updates(self) -> PackageQueryResult:
        """
        Query every package manager present for available updates.

        Returns:
            A PackageQueryResult, as for installed().
        """
        queries: dict[str, tuple[str, Callable[[], list[PkgInfo]]]] = {
            "apt": ("apt-get", self._get_apt_updates),
            "yum": (self._yum_command(), self._get_yum_updates),
            "zypper": ("zypper", self._get_zypper_updates),
            "gem": ("gem", self._get_gem_updates),
            "pip": (self._pip_command(), self._get_pip_updates),
        }
        return self._run_queries(queries)

    def _run_queries(
        self, queries: dict[str, tuple[str, Callable[[], list[PkgInfo]]]]
    ) -> PackageQueryResult:
        found: dict[str, tuple[PkgInfo, ...]] = {}
        errors: list[str] = []
        succeeded: list[str] = []

        for group, (binary, query) in queries.items():
            if not self.command_exists(binary):
                continue
            try:
                found[group] = tuple(query())
                succeeded.append(group)
            except (CollectorError, ValueError) as e:
                errors.append(f"{group}: {e}")

        return PackageQueryResult(Packages(**found), tuple(errors), tuple(succeeded))

    def _pip_command(self) -> str:
        return "pip3" if self.command_exists("pip3") else "pip"

    def _yum_command(self) -> str:
        return "dnf" if self.command_exists("dnf") else "yum"

    # Installed packages
    def _get_rpm_installed(self) -> list[PkgInfo]:
        """Get installed RPM packages."""
        stdout = self.query(
            ["rpm", "--nodigest", "--nosignature", "-qa", "--queryformat", RPM_QUERY_FORMAT]
        )
        return self._parse_name_arch_version(stdout)

    def _get_deb_installed(self) -> list[PkgInfo]:
        """Get installed dpkg packages."""
        stdout = self.query(["dpkg-query", "-W", "-f", DPKG_QUERY_FORMAT])
        return self._parse_name_arch_version(stdout)

    def _get_gem_installed(self) -> list[PkgInfo]:
        """Get locally installed gems."""
        stdout = self.query(["gem", "list", "--local"])
        packages = []
        for line in stdout.strip().split("\n"):
            # "rake (12.3.3, 10.5.0)" or "json (default: 2.1.0)"
            name, _, rest = line.strip().partition(" (")
            if not name or not rest:
                continue
            version = rest.rstrip(")").split(",")[0].replace("default:", "").strip()
            packages.append(PkgInfo(name=name, arch="all", version=version))
        return packages

    def _get_pip_installed(self) -> list[PkgInfo]:
        """Get installed Python distributions."""
        stdout = self.query([self._pip_command(), "list", "--format=json"])
        return [
            PkgInfo(name=p.get("name", ""), arch="all", version=p.get("version", ""))
            for p in json.loads(stdout or "[]")
        ]

    # Available updates
    def _get_apt_updates(self) -> list[PkgInfo]:
        """Get upgradeable packages from APT."""
        _, stderr, rc = self.run_command(["apt-get", "update", "-qq"], timeout=300)
        if rc != 0:
            self.logger.warning(f"apt-get update failed, using cached lists: {stderr.strip()}")

        stdout = self.query(["apt-get", "upgrade", "--just-print", "-qq"], timeout=120)
        packages = []
        for line in stdout.strip().split("\n"):
            # Inst libc6 [2.27-3ubuntu1] (2.27-3ubuntu1.2 Ubuntu:18.04/bionic-updates [amd64])
            parts = line.split()
            if len(parts) < 3 or parts[0] != "Inst":
                continue
            version = next((p[1:] for p in parts[2:] if p.startswith("(")), "")
            arch = parts[-1].strip("[]()") if parts[-1].endswith("])") else ""
            packages.append(PkgInfo(name=parts[1], arch=arch, version=version))
        return packages

    def _get_yum_updates(self) -> list[PkgInfo]:
        """Get upgradeable packages from YUM or DNF."""
        # check-update exits 100 when updates are available
        stdout = self.query(
            [self._yum_command(), "check-update", "--assumeyes", "--quiet"],
            ok_codes=(0, 100),
            timeout=300,
        )
        packages = []
        pending: list[str] = []
        for line in stdout.strip().split("\n"):
            if line.startswith("Obsoleting"):
                break
            # Long names are wrapped onto a line of their own
            parts = pending + line.split()
            if 0 < len(parts) < 3 and "." in parts[0]:
                pending = parts
                continue
            pending = []
            if len(parts) != 3 or "." not in parts[0]:
                continue
            name, _, arch = parts[0].rpartition(".")
            packages.append(PkgInfo(name=name, arch=arch, version=parts[1]))
        return packages

    def _get_zypper_updates(self) -> list[PkgInfo]:
        """Get upgradeable packages from Zypper."""
        stdout = self.query(
            ["zypper", "--non-interactive", "--quiet", "list-updates"], timeout=300
        )
        packages = []
        for line in stdout.strip().split("\n"):
            # S | Repository | Name | Current Version | Available Version | Arch
            parts = [p.strip() for p in line.split("|")]
            if len(parts) < 6 or parts[0] == "S" or not parts[2]:
                continue
            packages.append(PkgInfo(name=parts[2], arch=parts[5], version=parts[4]))
        return packages

    def _get_gem_updates(self) -> list[PkgInfo]:
        """Get outdated gems."""
        stdout = self.query(["gem", "outdated", "--local"])
        packages = []
        for line in stdout.strip().split("\n"):
            # "rake (10.5.0 < 12.3.3)"
            name, _, rest = line.strip().partition(" (")
            if not name or "<" not in rest:
                continue
            version = rest.rstrip(")").split("<")[-1].strip()
            packages.append(PkgInfo(name=name, arch="all", version=version))
        return packages

    def _get_pip_updates(self) -> list[PkgInfo]:
        """Get outdated Python distributions."""
        stdout = self.query([self._pip_command(), "list", "--outdated", "--format=json"])
        data: list[dict[str, Any]] = json.loads(stdout or "[]")
        return [
            PkgInfo(name=p.get("name", ""), arch="all", version=p.get("latest_version", ""))
            for p in data
        ]

    @staticmethod
    def _parse_name_arch_version(output: str) -> list[PkgInfo]:
        packages = []
        for line in output.strip().split("\n"):
            parts = line.split()
            if len(parts) != 3:
                continue
            packages.append(PkgInfo(name=parts[0], arch=parts[1], version=parts[2]))
        return packages
