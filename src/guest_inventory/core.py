"""
Core orchestration module for Guest Inventory.

Wires configuration, data sources and the attribute writer into a single
gather-then-publish cycle, and exposes the trigger that queues one.
"""

from __future__ import annotations

import logging

from guest_inventory import tasker
from guest_inventory.attributes import AttributeSink, GuestAttributesClient
from guest_inventory.config import Config
from guest_inventory.inventory import DataSource, InstanceInventory, build_inventory
from guest_inventory.publisher import publish_inventory

logger = logging.getLogger(__name__)

TASK_NAME = "Run OSInventory"


class InventoryAgent:
    """
    Gathers the instance inventory and writes it to guest attributes.

    The sink and data source default to the metadata server and the running
    system; tests and dry runs pass their own.
    """

    def __init__(
        self,
        config: Config | None = None,
        sink: AttributeSink | None = None,
        source: DataSource | None = None,
    ):
        self.config = config or Config()
        self.sink = sink or GuestAttributesClient(self.config)
        self.source = source

    @property
    def inventory_url(self) -> str:
        return self.config.inventory_url

    def collect(self) -> InstanceInventory:
        """Build a fresh inventory record."""
        return build_inventory(self.source)

    def publish(self, inventory: InstanceInventory) -> None:
        """Write an inventory record under inventory_url."""
        publish_inventory(inventory, self.inventory_url, self.sink)

    def run_cycle(self) -> None:
        """Collect and publish once."""
        self.publish(self.collect())


def run(config: Config | None = None, sink: AttributeSink | None = None) -> None:
    """
    Queue one inventory cycle on the task worker and return immediately.

    Configuration is resolved on the worker, so a bad config file or
    environment value is logged as a task failure instead of raised here.

    Args:
        config: Optional configuration. Loaded from the default locations
            if not provided.
        sink: Optional attribute writer, e.g. a DryRunSink.
    """

    def cycle() -> None:
        InventoryAgent(config or Config.load(), sink=sink).run_cycle()

    tasker.enqueue(TASK_NAME, cycle)
