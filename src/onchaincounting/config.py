"""Runtime settings sourced from the environment."""

from dataclasses import dataclass
import os
from typing import Optional

import structlog

from onchaincounting.domain.aggregator import DEFAULT_DEDUCTIBLE_VAT_RATE

logger = structlog.get_logger(__name__)

DEFAULT_MONERIUM_API_URL = "https://api.monerium.app"


@dataclass(frozen=True)
class Settings:
    """Settings for reporting and the payment institution connection.

    Attributes:
        monerium_base_url: Base URL of the Monerium API.
        monerium_access_token: Bearer token; sync is unavailable without it.
        monerium_address: On-chain address whose balance is shown.
        monerium_chain: Chain of that address.
        deductible_vat_rate: Percentage applied to deductible expenses.
        request_timeout: HTTP timeout in seconds.
    """

    monerium_base_url: str = DEFAULT_MONERIUM_API_URL
    monerium_access_token: Optional[str] = None
    monerium_address: Optional[str] = None
    monerium_chain: str = "gnosis"
    deductible_vat_rate: float = DEFAULT_DEDUCTIBLE_VAT_RATE
    request_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Returns:
            Settings: Settings sourced from environment variables.
        """
        return cls(
            monerium_base_url=os.getenv("MONERIUM_API_URL", DEFAULT_MONERIUM_API_URL).rstrip("/"),
            monerium_access_token=os.getenv("MONERIUM_ACCESS_TOKEN") or None,
            monerium_address=os.getenv("MONERIUM_ADDRESS") or None,
            monerium_chain=os.getenv("MONERIUM_CHAIN", "gnosis").strip().lower(),
            deductible_vat_rate=cls._float_env(
                "ONCHAINCOUNTING_VAT_RATE", DEFAULT_DEDUCTIBLE_VAT_RATE
            ),
            request_timeout=cls._float_env("MONERIUM_TIMEOUT", 10.0),
        )

    @staticmethod
    def _float_env(name: str, default: float) -> float:
        """Read a float variable, falling back to the default on bad input."""
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default
        try:
            return float(raw)
        except ValueError:
            logger.warning("config.invalid_float", name=name, value=raw, default=default)
            return default


__all__ = ["Settings"]
