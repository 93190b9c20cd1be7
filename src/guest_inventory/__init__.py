"""
Guest Inventory - Instance inventory reporting for Linux guests.

Gathers hostname, distribution, kernel and package information from the
running system and writes it, field by field, to the metadata server's
guest attributes.
"""

__version__ = "0.3.0"
__author__ = "Guest Inventory Authors"

__all__ = ["__version__"]
