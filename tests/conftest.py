"""
Pytest fixtures and configuration for Guest Inventory tests.

Provides reusable fixtures for command outputs, fake data sources and
recording attribute sinks across the test suite.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from guest_inventory.attributes import AttributeSink, AttributeWriteError
from guest_inventory.collectors import CollectorError, DistributionInfo, Packages, PkgInfo
from guest_inventory.config import Config
from guest_inventory.inventory import DataSource, InstanceInventory


class RecordingSink(AttributeSink):
    """Attribute sink that records every call and can fail chosen keys."""

    def __init__(self, fail_keys: set[str] | None = None):
        self.calls: list[tuple[str, str, Any]] = []
        self.fail_keys = fail_keys or set()

    def put_text(self, key: str, value: str) -> None:
        self.calls.append(("text", key, value))
        if key in self.fail_keys:
            raise AttributeWriteError(f"rejected {key}")

    def put_compressed(self, key: str, value: Any) -> None:
        self.calls.append(("compressed", key, value))
        if key in self.fail_keys:
            raise AttributeWriteError(f"rejected {key}")

    @property
    def keys(self) -> list[str]:
        return [key for _, key, _ in self.calls]

    def value(self, key: str) -> Any:
        return next(value for _, k, value in self.calls if k == key)


class FakeDataSource(DataSource):
    """Data source returning canned values or raising for chosen methods."""

    def __init__(self, failing: set[str] | None = None, **values: Any):
        self.failing = failing or set()
        self.values = {
            "hostname": "test-host",
            "distribution_info": DistributionInfo(
                long_name="Debian GNU/Linux 12 (bookworm)",
                short_name="debian",
                version="12",
                kernel="6.1.0-18-cloud-amd64",
                architecture="x86_64",
            ),
            "agent_version": "1.2.3",
            "installed_packages": Packages(
                deb=(PkgInfo("bash", "amd64", "5.2.15-2+b2"),)
            ),
            "package_updates": Packages(apt=(PkgInfo("curl", "amd64", "7.88.1-10+deb12u5"),)),
        }
        self.values.update(values)

    def _get(self, name: str) -> Any:
        if name in self.failing:
            raise CollectorError(f"{name} unavailable")
        return self.values[name]

    def hostname(self) -> str:
        return self._get("hostname")

    def distribution_info(self) -> DistributionInfo:
        return self._get("distribution_info")

    def agent_version(self) -> str:
        return self._get("agent_version")

    def installed_packages(self) -> Packages:
        return self._get("installed_packages")

    def package_updates(self) -> Packages:
        return self._get("package_updates")


@pytest.fixture
def recording_sink():
    """Attribute sink that records writes."""
    return RecordingSink()


@pytest.fixture
def fake_source():
    """Data source with every query succeeding."""
    return FakeDataSource()


@pytest.fixture
def make_sink():
    """Factory for recording sinks, e.g. make_sink(fail_keys={...})."""
    return RecordingSink


@pytest.fixture
def make_source():
    """Factory for fake data sources, e.g. make_source(failing={...})."""
    return FakeDataSource


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2024-01-01T12:00:00Z."""
    return lambda: datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_inventory():
    """Fully populated inventory record."""
    return InstanceInventory(
        hostname="vm-1",
        long_name="Ubuntu 22.04.3 LTS",
        short_name="ubuntu",
        version="22.04",
        architecture="x86_64",
        kernel_version="5.15.0-1047-gcp",
        osconfig_agent_version="0.3.0",
        installed_packages=Packages(deb=(PkgInfo("bash", "amd64", "5.1-6ubuntu1"),)),
        package_updates=Packages(apt=(PkgInfo("openssl", "amd64", "3.0.2-0ubuntu1.12"),)),
    )


@pytest.fixture
def sample_config():
    """Sample configuration for testing."""
    return Config(
        attributes_url="http://metadata.test/computeMetadata/v1/instance/guest-attributes",
        attributes_timeout=5,
    )


@pytest.fixture
def base_url(sample_config):
    return sample_config.inventory_url


# Test Data Fixtures - Command Outputs
@pytest.fixture
def sample_rpm_output():
    """Sample output from rpm -qa with the inventory query format."""
    return """bash x86_64 5.2.15-3.fc39
glibc x86_64 2.38-14.fc39
gpg-pubkey (none) 18b8e74c-62f2920f
python3 x86_64 3.11.6-1.fc39
"""


@pytest.fixture
def sample_dpkg_output():
    """Sample output from dpkg-query -W with the inventory format."""
    return """adduser all 3.134
bash amd64 5.2.15-2+b2
libc6 amd64 2.36-9+deb12u4
"""


@pytest.fixture
def sample_apt_upgrade_output():
    """Sample output from apt-get upgrade --just-print."""
    return """Inst libc6 [2.36-9+deb12u3] (2.36-9+deb12u4 Debian-Security:12/stable-security [amd64])
Inst tzdata [2023c-5] (2024a-0+deb12u1 Debian:12.5/stable [all])
Conf libc6 (2.36-9+deb12u4 Debian-Security:12/stable-security [amd64])
Conf tzdata (2024a-0+deb12u1 Debian:12.5/stable [all])
"""


@pytest.fixture
def sample_yum_check_update_output():
    """Sample output from yum check-update --quiet."""
    return """
kernel.x86_64                     3.10.0-1160.108.1.el7          updates
openssl-libs.x86_64               1:1.0.2k-26.el7_9              updates
NetworkManager-libnm.x86_64
                                  1:1.18.8-2.el7_9               updates
python-perf.x86_64                3.10.0-1160.108.1.el7
                                                                 updates
Obsoleting Packages
grub2.x86_64                      1:2.02-0.87.el7.centos         base
"""


@pytest.fixture
def sample_zypper_list_updates_output():
    """Sample output from zypper list-updates."""
    return """S | Repository           | Name   | Current Version | Available Version | Arch
--+----------------------+--------+-----------------+-------------------+-------
v | SLES15-SP5-Updates   | curl   | 8.0.1-150400.5.1 | 8.0.1-150400.5.41 | x86_64
v | SLES15-SP5-Updates   | vim    | 9.0.1894-1.1    | 9.1.0111-17.29.1  | x86_64
"""


@pytest.fixture
def sample_gem_list_output():
    """Sample output from gem list --local."""
    return """bigdecimal (default: 3.1.1)
rake (13.0.6, 12.3.3)
"""


@pytest.fixture
def sample_pip_list_output():
    """Sample JSON output from pip list --format=json."""
    return '[{"name": "requests", "version": "2.31.0"}, {"name": "PyYAML", "version": "6.0.1"}]'
