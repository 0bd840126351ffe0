"""Gate v4 REST client.

Handles market data, spot accounts and orders, and wallet operations.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from spot_connector.domain.errors import BodyError
from spot_connector.domain.types import Credentials
from spot_connector.exchange.gate.adapter import GateAdapter
from spot_connector.exchange.gate.models import (
    ACCOUNT_SPOT,
    ORDER_TYPE_LIMIT,
    Account,
    Currency,
    CurrencyPair,
    DepositAddress,
    OpenOrders,
    Order,
    OrderBook,
    Withdrawal,
)
from spot_connector.exchange.rest import (
    RestResponse,
    RestTransport,
    decode_list,
    decode_model,
)

logger = logging.getLogger(__name__)


class GateRestClient:
    """REST client for the Gate v4 spot API.

    Handles:
    - Currencies, pairs and order books (public)
    - Spot account balances
    - Order placement, cancellation and queries
    - Deposit addresses and withdrawals
    """

    def __init__(
        self,
        adapter: GateAdapter | None = None,
        credentials: Credentials | None = None,
        timeout: float = 30.0,
        transport: RestTransport | None = None,
    ) -> None:
        """Initialize the REST client.

        Args:
            adapter: Gate adapter (production URLs if None)
            credentials: API credentials for authenticated calls
            timeout: Request timeout in seconds
            transport: Pre-built transport, overrides the other arguments
        """
        self._adapter = adapter or GateAdapter()
        self._transport = transport or RestTransport(
            self._adapter, credentials=credentials, timeout=timeout
        )

    async def start(self) -> None:
        """Start the REST client."""
        await self._transport.start()

    async def stop(self) -> None:
        """Stop the REST client."""
        await self._transport.stop()

    async def __aenter__(self) -> GateRestClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # Market data

    async def currencies(self) -> list[Currency]:
        """List all currencies."""
        response = await self._transport.request("GET", "/api/v4/spot/currencies")
        return decode_list(response, Currency)

    async def currency_pairs(self) -> list[CurrencyPair]:
        """List all currency pairs."""
        response = await self._transport.request("GET", "/api/v4/spot/currency_pairs")
        return decode_list(response, CurrencyPair)

    async def order_book(
        self, pair: str, interval: str = "", limit: int = 0
    ) -> OrderBook:
        """Get an order book snapshot.

        Args:
            pair: Currency pair (e.g., "BTC_USDT")
            interval: Price merge precision, empty for none
            limit: Number of levels per side (venue default 10)

        Returns:
            OrderBook for the pair
        """
        query: dict[str, str] = {"currency_pair": pair}
        if interval:
            query["interval"] = interval
        if limit:
            query["limit"] = str(limit)

        response = await self._transport.request("GET", "/api/v4/spot/order_book", query)
        if not isinstance(response.data, dict):
            raise BodyError(response.raw)
        snapshot = RestResponse(raw=response.raw, data={**response.data, "pair": pair})
        return decode_model(snapshot, OrderBook)

    # Accounts and orders

    async def accounts(self, currency: str = "") -> list[Account]:
        """Get spot balances.

        Args:
            currency: Single currency, empty for all
        """
        query = {"currency": currency} if currency else None
        response = await self._transport.request(
            "GET", "/api/v4/spot/accounts", query, authenticated=True
        )
        return decode_list(response, Account)

    async def open_orders(
        self, page: int = 0, limit: int = 0, account: str = ""
    ) -> list[Order]:
        """Get open orders across all pairs.

        The venue groups orders by pair; they are returned flattened.

        Args:
            page: Page number
            limit: Maximum orders per pair
            account: "spot", "margin" or "cross_margin"
        """
        query: dict[str, str] = {}
        if page:
            query["page"] = str(page)
        if limit:
            query["limit"] = str(limit)
        if account:
            query["account"] = account

        response = await self._transport.request(
            "GET", "/api/v4/spot/open_orders", query, authenticated=True
        )
        groups = decode_list(response, OpenOrders)
        return [order for group in groups for order in group.orders]

    async def place_order(
        self,
        pair: str,
        side: str,
        amount: Decimal | str,
        price: Decimal | str,
        order_type: str = ORDER_TYPE_LIMIT,
        account: str = ACCOUNT_SPOT,
        text: str = "",
    ) -> Order:
        """Place an order.

        Args:
            pair: Currency pair
            side: "buy" or "sell"
            amount: Order amount in the base currency
            price: Limit price
            order_type: Order type (only "limit" is supported by the venue)
            account: "spot", "margin" or "cross_margin"
            text: Client-side order ID; must start with "t-"

        Returns:
            The created order
        """
        body: dict[str, Any] = {
            "currency_pair": pair,
            "side": side,
            "amount": str(amount),
            "price": str(price),
        }
        if text:
            body["text"] = text
        if order_type:
            body["type"] = order_type
        if account:
            body["account"] = account

        logger.info(f"Placing order: {side} {amount} {pair} @ {price}")
        response = await self._transport.request(
            "POST", "/api/v4/spot/orders", body=body, authenticated=True
        )
        return decode_model(response, Order)

    def _order_query(self, pair: str, account: str) -> dict[str, str]:
        query = {"currency_pair": pair}
        if account:
            query["account"] = account
        return query

    async def cancel_order(self, order_id: str, pair: str, account: str = "") -> Order:
        """Cancel an order.

        Returns:
            The order as it was when cancelled
        """
        logger.info(f"Cancelling order: {order_id} on {pair}")
        response = await self._transport.request(
            "DELETE",
            f"/api/v4/spot/orders/{order_id}",
            self._order_query(pair, account),
            authenticated=True,
        )
        return decode_model(response, Order)

    async def get_order(self, order_id: str, pair: str, account: str = "") -> Order:
        """Get an order by ID."""
        response = await self._transport.request(
            "GET",
            f"/api/v4/spot/orders/{order_id}",
            self._order_query(pair, account),
            authenticated=True,
        )
        return decode_model(response, Order)

    # Wallet

    async def deposit_address(self, currency: str) -> DepositAddress:
        """Get deposit addresses for a currency, one per chain."""
        response = await self._transport.request(
            "GET",
            "/api/v4/wallet/deposit_address",
            {"currency": currency},
            authenticated=True,
        )
        return decode_model(response, DepositAddress)

    async def withdraw(
        self,
        currency: str,
        address: str,
        amount: Decimal | str,
        chain: str = "",
        memo: str = "",
    ) -> Withdrawal:
        """Submit a withdrawal.

        Args:
            currency: Currency to withdraw
            address: Destination address
            amount: Amount to withdraw
            chain: Chain name
            memo: Memo for currencies that need one

        Returns:
            The withdrawal record
        """
        body: dict[str, Any] = {
            "currency": currency,
            "address": address,
            "amount": str(amount),
        }
        if memo:
            body["memo"] = memo
        if chain:
            body["chain"] = chain

        logger.info(f"Withdrawing {amount} {currency} to {address}")
        response = await self._transport.request(
            "POST", "/api/v4/withdrawals", body=body, authenticated=True
        )
        return decode_model(response, Withdrawal)
