"""
Base collector class that all collectors inherit from.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class CollectorError(Exception):
    """Raised when a data source cannot be read."""

    pass


class BaseCollector(ABC):
    """
    Abstract base class for all data collectors.

    Subclasses must implement the `collect` method to gather
    their specific data.
    """

    name: str = "base"
    description: str = "Base collector"

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    @abstractmethod
    def collect(self) -> Any:
        """
        Collect and return data.

        Raises:
            CollectorError: If the underlying source cannot be read.
        """
        pass

    def run_command(self, cmd: list[str], timeout: float = 60) -> tuple[str, str, int]:
        """
        Run a command and return its output.

        Never raises; a missing binary or a timeout is reported as
        returncode -1 with the reason in stderr.

        Returns:
            Tuple of (stdout, stderr, returncode).
        """
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
            return result.stdout, result.stderr, result.returncode
        except subprocess.TimeoutExpired:
            self.logger.warning(f"Command timed out: {' '.join(cmd)}")
            return "", "Command timed out", -1
        except OSError as e:
            self.logger.warning(f"Could not run {cmd[0]}: {e}")
            return "", f"Could not run {cmd[0]}: {e}", -1

    def query(
        self,
        cmd: list[str],
        ok_codes: tuple[int, ...] = (0,),
        timeout: float = 60,
    ) -> str:
        """
        Run a query command and return stdout.

        Raises:
            CollectorError: If the command exits with a code outside ok_codes.
        """
        stdout, stderr, rc = self.run_command(cmd, timeout=timeout)
        if rc not in ok_codes:
            detail = stderr.strip() or f"exit code {rc}"
            raise CollectorError(f"{' '.join(cmd)}: {detail}")
        return stdout

    def command_exists(self, name: str) -> bool:
        """Return True if an executable is on PATH."""
        return shutil.which(name) is not None
