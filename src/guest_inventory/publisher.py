"""
Publishes an instance inventory to guest attributes, one field per key.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from guest_inventory.attributes import AttributeSink
from guest_inventory.inventory import FieldKind, InstanceInventory, InventorySchemaError

logger = logging.getLogger(__name__)

LAST_UPDATED = "LastUpdated"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def publish_inventory(
    inventory: InstanceInventory,
    base_url: str,
    sink: AttributeSink,
    clock: Callable[[], datetime] | None = None,
) -> None:
    """
    Write the inventory to base_url/<FieldName>, plus base_url/LastUpdated.

    Every field is attempted exactly once. A failed write is logged and the
    remaining fields are still written; nothing is raised to the caller.

    Args:
        inventory: The record to publish.
        base_url: Key prefix, e.g. ".../guest-attributes/guestInventory".
        sink: Where to write.
        clock: Returns the current time. Defaults to UTC now.
    """
    logger.info("Writing instance inventory.")

    timestamp = (clock or _utcnow)().astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
    try:
        sink.put_text(f"{base_url}/{LAST_UPDATED}", timestamp)
    except Exception as e:
        logger.error(f"Writing {base_url}/{LAST_UPDATED} failed: {e}")

    for inventory_field, value in inventory.fields():
        key = f"{base_url}/{inventory_field.name}"
        logger.debug(f"Writing {key}: {value!r}")

        if inventory_field.kind is FieldKind.SCALAR:
            write = sink.put_text
        elif inventory_field.kind is FieldKind.COMPOSITE:
            write = sink.put_compressed
        else:
            raise InventorySchemaError(
                f"Field {inventory_field.name!r} has unsupported kind {inventory_field.kind!r}"
            )

        try:
            write(key, value)
        except Exception as e:
            logger.error(f"Writing {key} failed: {e}")
