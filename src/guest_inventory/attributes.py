"""
Guest attribute writers for Guest Inventory.

Handles writing single values to the metadata server's guest attributes.
"""

from __future__ import annotations

import base64
import gzip
import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import requests

if TYPE_CHECKING:
    from guest_inventory.config import Config

logger = logging.getLogger(__name__)


class AttributeWriteError(Exception):
    """Raised when a guest attribute could not be written."""

    pass


def compress_payload(value: Any) -> str:
    """
    Encode a structured value for storage in a guest attribute.

    The value (or its to_dict() form) is JSON encoded, gzipped and then
    base64 encoded so it fits in a text attribute.

    Raises:
        AttributeWriteError: If the value cannot be serialized.
    """
    if hasattr(value, "to_dict"):
        value = value.to_dict()

    try:
        json_data = json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise AttributeWriteError(f"Could not serialize value: {e}") from e

    return base64.b64encode(gzip.compress(json_data.encode("utf-8"))).decode("ascii")


class AttributeSink(ABC):
    """Key-value store that receives published fields."""

    @abstractmethod
    def put_text(self, key: str, value: str) -> None:
        """
        Write a text value to key.

        Raises:
            AttributeWriteError: If the write is rejected or cannot complete.
        """
        pass

    def put_compressed(self, key: str, value: Any) -> None:
        """
        Write a structured value to key using compress_payload.

        Raises:
            AttributeWriteError: If serialization or the write fails.
        """
        self.put_text(key, compress_payload(value))


class GuestAttributesClient(AttributeSink):
    """
    Writes guest attributes through the metadata server.

    Each write is a single HTTP PUT; failures are reported, not retried.
    """

    def __init__(self, config: Config):
        self.config = config
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Metadata-Flavor": "Google",
                "User-Agent": f"guest-inventory/{self._get_version()}",
            }
        )

    def put_text(self, key: str, value: str) -> None:
        try:
            response = self.session.put(
                key,
                data=value.encode("utf-8"),
                timeout=self.config.attributes_timeout,
            )
        except requests.exceptions.Timeout as e:
            raise AttributeWriteError(f"PUT {key} timed out") from e
        except requests.exceptions.RequestException as e:
            raise AttributeWriteError(f"PUT {key} failed: {e}") from e

        if response.status_code != 200:
            raise AttributeWriteError(
                f"PUT {key} returned HTTP {response.status_code}: {response.text[:200]}"
            )

    def test_connection(self) -> bool:
        """
        Test connection to the metadata server.

        Returns:
            True if the server answers, False otherwise.
        """
        try:
            response = self.session.get(
                self.config.attributes_url.split("/computeMetadata", 1)[0],
                timeout=self.config.attributes_timeout,
            )
            return bool(response.status_code < 500)
        except requests.exceptions.RequestException:
            return False

    def _get_version(self) -> str:
        from guest_inventory import __version__

        return __version__


class DryRunSink(AttributeSink):
    """Logs the writes that would have been made."""

    def put_text(self, key: str, value: str) -> None:
        logger.info(f"[dry-run] {key} = {value[:80]!r}")
