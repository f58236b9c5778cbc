"""Read-only client for the Monerium payment institution API."""

from datetime import datetime
from typing import Any, Optional

import requests
import structlog

from onchaincounting.config import Settings
from onchaincounting.domain.entities import (
    Balance,
    Order,
    OrderKind,
    OrderState,
    PaymentStandard,
)
from onchaincounting.domain.errors import AuthorizationError, SyncError
from onchaincounting.utils.date_parser import parse_timestamp

logger = structlog.get_logger(__name__)

ACCEPT_HEADER = "application/vnd.monerium.api-v2+json"


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() + "Z"


def order_from_payload(payload: dict[str, Any]) -> Order:
    """Convert an order as returned by the API (or stored in a backup).

    Raises:
        KeyError: If a required field is missing
        ValueError: If a value cannot be interpreted
    """
    counterpart = payload.get("counterpart") or {}
    identifier = counterpart.get("identifier") or {}
    details = counterpart.get("details") or {}
    meta = payload.get("meta") or {}

    standard = PaymentStandard(identifier.get("standard", PaymentStandard.IBAN.value))
    if standard == PaymentStandard.IBAN:
        counterpart_identifier = identifier.get("iban", "")
    else:
        counterpart_identifier = identifier.get("address", "")

    name = details.get("name") or details.get("companyName")
    if not name and (details.get("firstName") or details.get("lastName")):
        name = " ".join(
            part for part in (details.get("firstName"), details.get("lastName")) if part
        )

    placed_at = parse_timestamp(meta.get("placedAt"))
    if placed_at is None:
        raise ValueError(f"Order {payload.get('id')} has no placement time")

    return Order(
        id=str(payload["id"]),
        kind=OrderKind(payload["kind"]),
        amount=float(payload["amount"]),
        currency=str(payload.get("currency", "eur")),
        counterpart_standard=standard,
        counterpart_identifier=counterpart_identifier,
        counterpart_name=name,
        state=OrderState(meta.get("state", OrderState.PLACED.value)),
        placed_at=placed_at,
        approved_at=parse_timestamp(meta.get("approvedAt")),
        processed_at=parse_timestamp(meta.get("processedAt")),
        address=payload.get("address"),
        chain=payload.get("chain"),
        memo=payload.get("memo"),
        last_synced=parse_timestamp(payload.get("lastSynced")),
    )


def order_to_payload(order: Order) -> dict[str, Any]:
    """Convert an order back to the API shape used in backups."""
    identifier: dict[str, Any] = {"standard": order.counterpart_standard.value}
    if order.counterpart_standard == PaymentStandard.IBAN:
        identifier["iban"] = order.counterpart_identifier
    else:
        identifier["address"] = order.counterpart_identifier
        identifier["chain"] = order.chain

    return {
        "id": order.id,
        "kind": order.kind.value,
        "amount": order.amount,
        "currency": order.currency,
        "address": order.address,
        "chain": order.chain,
        "memo": order.memo,
        "counterpart": {
            "identifier": identifier,
            "details": {"name": order.counterpart_name},
        },
        "meta": {
            "state": order.state.value,
            "placedAt": _format_timestamp(order.placed_at),
            "approvedAt": _format_timestamp(order.approved_at),
            "processedAt": _format_timestamp(order.processed_at),
        },
        "lastSynced": _format_timestamp(order.last_synced),
    }


class MoneriumClient:
    """Fetches orders and balances with a bearer token.

    The client never writes to the remote side and never retries; failures
    surface as SyncError so the caller can fall back to the local mirror.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            base_url: API base URL, without trailing slash
            access_token: Bearer token
            timeout: Request timeout in seconds
            session: Optional requests session (a new one is created otherwise)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Authorization": f"Bearer {access_token}", "Accept": ACCEPT_HEADER}
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, session: Optional[requests.Session] = None
    ) -> "MoneriumClient":
        """Build a client from settings.

        Raises:
            AuthorizationError: If no access token is configured
        """
        if not settings.monerium_access_token:
            raise AuthorizationError(
                "No Monerium access token configured (set MONERIUM_ACCESS_TOKEN)"
            )
        return cls(
            settings.monerium_base_url,
            settings.monerium_access_token,
            timeout=settings.request_timeout,
            session=session,
        )

    def _get(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("monerium.request", url=url)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SyncError(f"Could not reach Monerium: {e}") from e

        if response.status_code in (401, 403):
            raise AuthorizationError(
                f"Monerium rejected the access token (HTTP {response.status_code})"
            )
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise SyncError(f"Monerium request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise SyncError("Monerium returned an invalid response") from e

    def get_orders(self) -> list[Order]:
        """Fetch every order of the authorized profile.

        Raises:
            AuthorizationError: If the token is rejected
            SyncError: On transport errors or malformed orders
        """
        data = self._get("/orders")
        payloads = data.get("orders", []) if isinstance(data, dict) else data
        try:
            orders = [order_from_payload(payload) for payload in payloads]
        except (KeyError, TypeError, ValueError) as e:
            raise SyncError(f"Monerium returned a malformed order: {e}") from e
        logger.info("monerium.orders_fetched", count=len(orders))
        return orders

    def get_balances(self, address: str, chain: str) -> list[Balance]:
        """Fetch the EUR balances of an address on a chain.

        Raises:
            AuthorizationError: If the token is rejected
            SyncError: On transport errors or malformed balances
        """
        data = self._get(f"/balances/{chain}/{address}", params={"currency": "eur"})
        entries = data.get("balances", []) if isinstance(data, dict) else data
        try:
            return [
                Balance(
                    currency=str(entry["currency"]),
                    amount=float(entry["amount"]),
                    address=address,
                    chain=chain,
                )
                for entry in entries
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise SyncError(f"Monerium returned a malformed balance: {e}") from e
