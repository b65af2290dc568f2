"""
Payment rail - the external system that actually moves money.

The ledger only needs one operation, transfer(asset, recipient, amount, data).
Every failure cause (insufficient funds, frozen account, transport error,
rejected request) surfaces as PaymentRailError. Nothing is retried here.
"""

import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from splitledger.core.config import settings
from splitledger.core.errors import PaymentRailError

logger = logging.getLogger("splitledger.services.payment_rail")


@runtime_checkable
class PaymentRail(Protocol):
    async def transfer(
        self,
        asset: str,
        recipient: str,
        amount: int,
        data: Dict[str, Any],
    ) -> None:
        """Move `amount` of `asset` to `recipient`; raise PaymentRailError on failure."""
        ...


class HttpPaymentRail:
    """Payment rail reached over HTTP: POST {base_url}/transfers."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def transfer(
        self,
        asset: str,
        recipient: str,
        amount: int,
        data: Dict[str, Any],
    ) -> None:
        payload = {
            "asset": asset,
            "recipient": recipient,
            "amount": amount,
            "data": data,
        }
        try:
            response = await self.client.post("/transfers", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Payment rail transfer to %s failed: %s", recipient, e)
            raise PaymentRailError(f"Transfer to {recipient} failed") from e

    async def aclose(self) -> None:
        await self.client.aclose()


class PaymentRailHolder:
    """Payment rail connection manager."""

    rail: Optional[HttpPaymentRail] = None

payment_rail_holder = PaymentRailHolder()

async def connect_payment_rail():
    """Open the HTTP client used for every transfer."""
    payment_rail_holder.rail = HttpPaymentRail(
        settings.PAYMENT_RAIL_URL,
        timeout=settings.PAYMENT_RAIL_TIMEOUT_SECONDS
    )
    logger.info("Payment rail client ready: %s", settings.PAYMENT_RAIL_URL)

async def close_payment_rail():
    """Close the payment rail HTTP client."""
    if payment_rail_holder.rail is not None:
        await payment_rail_holder.rail.aclose()
        payment_rail_holder.rail = None

def get_payment_rail() -> PaymentRail:
    """Get payment rail instance."""
    return payment_rail_holder.rail
