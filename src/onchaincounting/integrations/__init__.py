"""Clients for external services."""

from onchaincounting.integrations.monerium import MoneriumClient

__all__ = ["MoneriumClient"]
