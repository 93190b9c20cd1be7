"""
Instance inventory record and the builder that assembles it.

The record's shape is declared once in INVENTORY_FIELDS: an ordered table of
(name, kind, accessor) entries that the publisher walks directly.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Iterator

from guest_inventory.collectors import (
    CollectorError,
    DistributionInfo,
    PackageQueryResult,
    Packages,
    PackagesCollector,
    SystemCollector,
)

logger = logging.getLogger(__name__)


class InventorySchemaError(Exception):
    """Raised when the inventory field table declares an unsupported kind."""

    pass


class FieldKind(Enum):
    """How a field's value is encoded when written."""

    SCALAR = "scalar"
    COMPOSITE = "composite"


@dataclass(frozen=True)
class InventoryField:
    """One published field: its key suffix, kind and value accessor."""

    name: str
    kind: FieldKind
    accessor: Callable[[InstanceInventory], Any]

    def __post_init__(self) -> None:
        if not isinstance(self.kind, FieldKind):
            raise InventorySchemaError(
                f"Field {self.name!r} has unsupported kind {self.kind!r}"
            )


@dataclass(frozen=True)
class InstanceInventory:
    """Snapshot of the instance's identity and software state."""

    hostname: str = ""
    long_name: str = ""
    short_name: str = ""
    version: str = ""
    architecture: str = ""
    kernel_version: str = ""
    osconfig_agent_version: str = ""
    installed_packages: Packages = field(default_factory=Packages)
    package_updates: Packages = field(default_factory=Packages)

    def fields(self) -> Iterator[tuple[InventoryField, Any]]:
        """Yield (field, value) pairs in declaration order."""
        for inventory_field in INVENTORY_FIELDS:
            yield inventory_field, inventory_field.accessor(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary keyed by field name."""
        result: dict[str, Any] = {}
        for inventory_field, value in self.fields():
            if inventory_field.kind is FieldKind.COMPOSITE:
                value = value.to_dict()
            result[inventory_field.name] = value
        return result


INVENTORY_FIELDS: tuple[InventoryField, ...] = (
    InventoryField("Hostname", FieldKind.SCALAR, attrgetter("hostname")),
    InventoryField("LongName", FieldKind.SCALAR, attrgetter("long_name")),
    InventoryField("ShortName", FieldKind.SCALAR, attrgetter("short_name")),
    InventoryField("Version", FieldKind.SCALAR, attrgetter("version")),
    InventoryField("Architecture", FieldKind.SCALAR, attrgetter("architecture")),
    InventoryField("KernelVersion", FieldKind.SCALAR, attrgetter("kernel_version")),
    InventoryField("OSConfigAgentVersion", FieldKind.SCALAR, attrgetter("osconfig_agent_version")),
    InventoryField("InstalledPackages", FieldKind.COMPOSITE, attrgetter("installed_packages")),
    InventoryField("PackageUpdates", FieldKind.COMPOSITE, attrgetter("package_updates")),
)


class DataSource(ABC):
    """Where the builder reads host information from. Any method may raise."""

    @abstractmethod
    def hostname(self) -> str:
        pass

    @abstractmethod
    def distribution_info(self) -> DistributionInfo:
        pass

    @abstractmethod
    def agent_version(self) -> str:
        pass

    @abstractmethod
    def installed_packages(self) -> Packages:
        pass

    @abstractmethod
    def package_updates(self) -> Packages:
        pass


class SystemDataSource(DataSource):
    """Reads the running system through the collectors."""

    def __init__(self):
        self.system = SystemCollector()
        self.packages = PackagesCollector()

    def hostname(self) -> str:
        return self.system.hostname()

    def distribution_info(self) -> DistributionInfo:
        return self.system.collect()

    def agent_version(self) -> str:
        from guest_inventory import __version__

        return __version__

    def installed_packages(self) -> Packages:
        return self._checked("installed", self.packages.collect())

    def package_updates(self) -> Packages:
        return self._checked("updates", self.packages.updates())

    def _checked(self, what: str, result: PackageQueryResult) -> Packages:
        for error in result.errors:
            logger.warning(f"Package query ({what}) failed: {error}")
        # Partial results win unless every manager queried failed
        if result.all_failed:
            raise CollectorError(f"all package queries failed: {'; '.join(result.errors)}")
        return result.packages


def build_inventory(source: DataSource | None = None) -> InstanceInventory:
    """
    Gather the instance inventory.

    Never raises: a source that fails is logged and its fields are left at
    their empty values.

    Args:
        source: Where to read host data from. Defaults to the running system.

    Returns:
        A fully populated, possibly partial, InstanceInventory.
    """
    logger.info("Gathering instance inventory.")
    source = source or SystemDataSource()
    inventory = InstanceInventory()

    try:
        inventory = replace(inventory, hostname=source.hostname())
    except Exception as e:
        logger.error(f"Hostname query failed: {e}")

    try:
        info = source.distribution_info()
        inventory = replace(
            inventory,
            long_name=info.long_name,
            short_name=info.short_name,
            version=info.version,
            kernel_version=info.kernel,
            architecture=info.architecture,
        )
    except Exception as e:
        logger.error(f"Distribution info query failed: {e}")

    try:
        inventory = replace(inventory, osconfig_agent_version=source.agent_version())
    except Exception as e:
        logger.error(f"Agent version query failed: {e}")

    try:
        inventory = replace(inventory, installed_packages=source.installed_packages())
    except Exception as e:
        logger.error(f"Installed packages query failed: {e}")

    try:
        inventory = replace(inventory, package_updates=source.package_updates())
    except Exception as e:
        logger.error(f"Package updates query failed: {e}")

    return inventory
