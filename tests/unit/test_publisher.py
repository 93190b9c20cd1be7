"""
Unit tests for publish_inventory().

Tests key layout, encoding selection, per-field isolation and idempotence.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from guest_inventory.attributes import AttributeSink, AttributeWriteError
from guest_inventory.collectors import Packages
from guest_inventory.inventory import INVENTORY_FIELDS, InstanceInventory
from guest_inventory.publisher import publish_inventory

FIELD_NAMES = [f.name for f in INVENTORY_FIELDS]


class TestPublishKeys:
    """Test the keys written by publish_inventory()."""

    def test_write_count(self, sample_inventory, recording_sink, base_url):
        publish_inventory(sample_inventory, base_url, recording_sink)
        assert len(recording_sink.calls) == 1 + len(INVENTORY_FIELDS)

    def test_key_layout(self, sample_inventory, recording_sink):
        root = "http://md/computeMetadata/v1/instance/guest-attributes"
        publish_inventory(sample_inventory, f"{root}/guestInventory", recording_sink)

        assert recording_sink.keys == [
            f"{root}/guestInventory/LastUpdated",
            f"{root}/guestInventory/Hostname",
            f"{root}/guestInventory/LongName",
            f"{root}/guestInventory/ShortName",
            f"{root}/guestInventory/Version",
            f"{root}/guestInventory/Architecture",
            f"{root}/guestInventory/KernelVersion",
            f"{root}/guestInventory/OSConfigAgentVersion",
            f"{root}/guestInventory/InstalledPackages",
            f"{root}/guestInventory/PackageUpdates",
        ]

    def test_timestamp_format(self, sample_inventory, recording_sink, base_url, fixed_clock):
        publish_inventory(sample_inventory, base_url, recording_sink, clock=fixed_clock)

        assert recording_sink.calls[0] == (
            "text",
            f"{base_url}/LastUpdated",
            "2024-01-01T12:00:00Z",
        )

    def test_timestamp_converted_to_utc(self, sample_inventory, recording_sink, base_url):
        plus_two = timezone(timedelta(hours=2))
        clock = lambda: datetime(2024, 6, 1, 8, 30, 15, 999, tzinfo=plus_two)  # noqa: E731

        publish_inventory(sample_inventory, base_url, recording_sink, clock=clock)

        assert recording_sink.value(f"{base_url}/LastUpdated") == "2024-06-01T06:30:15Z"


class TestPublishEncoding:
    """Test that the write path depends only on field kind."""

    def test_scalar_fields_use_text(self, sample_inventory, recording_sink, base_url):
        publish_inventory(sample_inventory, base_url, recording_sink)

        paths = {key.rsplit("/", 1)[1]: path for path, key, _ in recording_sink.calls}
        for name in FIELD_NAMES[:7]:
            assert paths[name] == "text"
        assert paths["InstalledPackages"] == "compressed"
        assert paths["PackageUpdates"] == "compressed"

    def test_empty_values_keep_their_path(self, recording_sink, base_url):
        """Test that empty strings and empty package lists route the same way."""
        publish_inventory(InstanceInventory(), base_url, recording_sink)

        paths = [path for path, _, _ in recording_sink.calls[1:]]
        assert paths == ["text"] * 7 + ["compressed"] * 2
        assert recording_sink.value(f"{base_url}/Hostname") == ""
        assert recording_sink.value(f"{base_url}/InstalledPackages") == Packages()

    def test_values_passed_through(self, sample_inventory, recording_sink, base_url):
        publish_inventory(sample_inventory, base_url, recording_sink)

        assert recording_sink.value(f"{base_url}/Hostname") == "vm-1"
        assert recording_sink.value(f"{base_url}/PackageUpdates") is sample_inventory.package_updates


class TestPublishIsolation:
    """Test that one failed write never affects the others."""

    @pytest.mark.parametrize("failing", ["LastUpdated"] + FIELD_NAMES)
    def test_single_failure(self, failing, sample_inventory, make_sink, base_url):
        sink = make_sink(fail_keys={f"{base_url}/{failing}"})

        publish_inventory(sample_inventory, base_url, sink)

        assert len(sink.calls) == 1 + len(INVENTORY_FIELDS)
        assert sink.value(f"{base_url}/Hostname") == "vm-1"

    def test_every_write_failing(self, sample_inventory, base_url):
        sink = MagicMock(spec=AttributeSink)
        sink.put_text.side_effect = AttributeWriteError("down")
        sink.put_compressed.side_effect = AttributeWriteError("down")

        publish_inventory(sample_inventory, base_url, sink)

        assert sink.put_text.call_count == 8
        assert sink.put_compressed.call_count == 2

    def test_unexpected_sink_exception(self, sample_inventory, base_url):
        sink = MagicMock(spec=AttributeSink)
        sink.put_text.side_effect = RuntimeError("bug")

        publish_inventory(sample_inventory, base_url, sink)

        assert sink.put_compressed.call_count == 2

    def test_failures_are_logged(self, sample_inventory, make_sink, base_url, caplog):
        sink = make_sink(fail_keys={f"{base_url}/Version"})

        with caplog.at_level("ERROR", logger="guest_inventory.publisher"):
            publish_inventory(sample_inventory, base_url, sink)

        assert f"{base_url}/Version" in caplog.text
        assert "rejected" in caplog.text


class TestPublishIdempotence:
    """Test publishing the same record twice."""

    def test_same_payloads(self, sample_inventory, recording_sink, base_url, fixed_clock):
        publish_inventory(sample_inventory, base_url, recording_sink, clock=fixed_clock)
        publish_inventory(sample_inventory, base_url, recording_sink, clock=fixed_clock)

        half = len(recording_sink.calls) // 2
        assert recording_sink.calls[:half] == recording_sink.calls[half:]
