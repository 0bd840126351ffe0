"""CoinEx v2 REST client.

Handles market data, wallet and spot order operations.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from spot_connector.domain.errors import BodyError
from spot_connector.domain.events import OrderBookUpdate
from spot_connector.domain.types import Credentials
from spot_connector.exchange.coinex.adapter import CoinExAdapter
from spot_connector.exchange.coinex.models import (
    MARKET_TYPE_SPOT,
    DepositAddress,
    DepositWithdrawConfig,
    SpotBalance,
    SpotKLine,
    SpotMarket,
    SpotOrder,
    Withdrawal,
)
from spot_connector.exchange.rest import RestTransport, decode_list, decode_model

logger = logging.getLogger(__name__)


class CoinExRestClient:
    """REST client for the CoinEx v2 spot API.

    Handles:
    - Market information, candles and depth (public)
    - Deposit addresses, withdrawals and balances
    - Order placement, cancellation and queries

    Every call is a single attempt; failures surface as connector errors.
    """

    def __init__(
        self,
        adapter: CoinExAdapter | None = None,
        credentials: Credentials | None = None,
        timeout: float = 30.0,
        transport: RestTransport | None = None,
    ) -> None:
        """Initialize the REST client.

        Args:
            adapter: CoinEx adapter (production URLs if None)
            credentials: API credentials for authenticated calls
            timeout: Request timeout in seconds
            transport: Pre-built transport, overrides the other arguments
        """
        self._adapter = adapter or CoinExAdapter()
        self._transport = transport or RestTransport(
            self._adapter, credentials=credentials, timeout=timeout
        )

    async def start(self) -> None:
        """Start the REST client."""
        await self._transport.start()

    async def stop(self) -> None:
        """Stop the REST client."""
        await self._transport.stop()

    async def __aenter__(self) -> CoinExRestClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # Market data

    async def spot_markets(self, market: str = "") -> list[SpotMarket]:
        """Get market status.

        Args:
            market: Market name, empty for all markets

        Returns:
            Trading rules per market
        """
        query = {"market": market} if market else None
        response = await self._transport.request("GET", "/v2/spot/market", query)
        return decode_list(response, SpotMarket)

    async def spot_klines(
        self,
        market: str,
        period: str,
        limit: int = 0,
        price_type: str = "",
    ) -> list[SpotKLine]:
        """Get candles for a market.

        Args:
            market: Market name (e.g., "BTCUSDT")
            period: Candle period ("1min", "1hour", "1day", ...)
            limit: Number of candles (venue default 100, max 1000)
            price_type: Price used to draw candles (venue default latest_price)

        Returns:
            Candles, oldest first
        """
        query: dict[str, str] = {"market": market, "period": period}
        if price_type:
            query["price_type"] = price_type
        if limit:
            query["limit"] = str(limit)

        response = await self._transport.request("GET", "/v2/spot/kline", query)
        return decode_list(response, SpotKLine)

    async def spot_depth(
        self, market: str, limit: int = 20, interval: str = "0"
    ) -> OrderBookUpdate:
        """Get an order book snapshot.

        Args:
            market: Market name
            limit: Number of price levels (5, 10, 20 or 50)
            interval: Price merge interval ("0" for none)

        Returns:
            OrderBookUpdate in the same shape as a depth.update push
        """
        query = {"market": market, "limit": str(limit), "interval": interval}
        response = await self._transport.request("GET", "/v2/spot/depth", query)
        try:
            return self._adapter.parse_depth(response.data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected depth payload for {market}: {e}")
            raise BodyError(response.raw) from e

    # Wallet

    async def deposit_withdraw_config(self, ccy: str) -> DepositWithdrawConfig:
        """Get deposit and withdrawal settings for an asset."""
        response = await self._transport.request(
            "GET", "/v2/assets/deposit-withdraw-config", {"ccy": ccy}
        )
        return decode_model(response, DepositWithdrawConfig)

    async def deposit_address(self, ccy: str, chain: str) -> DepositAddress:
        """Get the deposit address of an asset on a chain."""
        response = await self._transport.request(
            "GET",
            "/v2/assets/deposit-address",
            {"ccy": ccy, "chain": chain},
            authenticated=True,
        )
        return decode_model(response, DepositAddress)

    async def withdraw(
        self,
        ccy: str,
        to_address: str,
        amount: Decimal | str,
        chain: str = "",
        withdraw_method: str = "",
        memo: str = "",
        extra: dict[str, Any] | None = None,
        remark: str = "",
    ) -> Withdrawal:
        """Submit a withdrawal.

        Args:
            ccy: Asset
            to_address: Destination (must be allow-listed for the API key)
            amount: Amount to withdraw
            chain: Chain name, required for on-chain withdrawals
            withdraw_method: "on_chain" (venue default) or "inter_user"
            memo: Memo for assets that need one
            extra: Chain specific fields (e.g., chain_id for KDA)
            remark: Free-form remark

        Returns:
            The withdrawal record
        """
        body: dict[str, Any] = {
            "ccy": ccy,
            "to_address": to_address,
            "amount": str(amount),
        }
        if chain:
            body["chain"] = chain
        if withdraw_method:
            body["withdraw_method"] = withdraw_method
        if memo:
            body["memo"] = memo
        if extra is not None:
            body["extra"] = extra
        if remark:
            body["remark"] = remark

        logger.info(f"Withdrawing {amount} {ccy} to {to_address}")
        response = await self._transport.request(
            "POST", "/v2/assets/withdraw", body=body, authenticated=True
        )
        return decode_model(response, Withdrawal)

    async def spot_balances(self) -> list[SpotBalance]:
        """Get spot account balances."""
        response = await self._transport.request(
            "GET", "/v2/assets/spot/balance", authenticated=True
        )
        return decode_list(response, SpotBalance)

    # Order operations

    async def place_order(
        self,
        market: str,
        side: str,
        order_type: str,
        amount: Decimal | str,
        price: Decimal | str | None = None,
        market_type: str = MARKET_TYPE_SPOT,
        ccy: str = "",
        client_id: str = "",
    ) -> SpotOrder:
        """Place an order.

        Args:
            market: Market name
            side: "buy" or "sell"
            order_type: "limit", "market", "maker_only", "ioc" or "fok"
            amount: Order amount
            price: Limit price (omitted for market orders)
            market_type: "SPOT" or "MARGIN"
            ccy: Amount currency for market orders
            client_id: Client-side order ID

        Returns:
            The created order
        """
        body: dict[str, Any] = {
            "market": market,
            "market_type": market_type,
            "side": side,
            "type": order_type,
            "amount": str(amount),
        }
        if ccy:
            body["ccy"] = ccy
        if price is not None:
            body["price"] = str(price)
        if client_id:
            body["client_id"] = client_id

        logger.info(f"Placing order: {side} {amount} {market} @ {price} ({order_type})")
        response = await self._transport.request(
            "POST", "/v2/spot/order", body=body, authenticated=True
        )
        return decode_model(response, SpotOrder)

    async def cancel_order(
        self, market: str, order_id: int, market_type: str = MARKET_TYPE_SPOT
    ) -> SpotOrder:
        """Cancel an order.

        Returns:
            The order as it was when cancelled
        """
        logger.info(f"Cancelling order: {order_id} on {market}")
        response = await self._transport.request(
            "POST",
            "/v2/spot/cancel-order",
            body={"market": market, "market_type": market_type, "order_id": order_id},
            authenticated=True,
        )
        return decode_model(response, SpotOrder)

    async def order_status(self, market: str, order_id: int) -> SpotOrder:
        """Get an order by ID."""
        response = await self._transport.request(
            "GET",
            "/v2/spot/order-status",
            {"market": market, "order_id": str(order_id)},
            authenticated=True,
        )
        return decode_model(response, SpotOrder)

    async def finished_orders(
        self,
        market_type: str = MARKET_TYPE_SPOT,
        market: str = "",
        side: str = "",
        page: int = 0,
        limit: int = 0,
    ) -> list[SpotOrder]:
        """Get filled and cancelled orders.

        Args:
            market_type: "SPOT" or "MARGIN"
            market: Market name, empty for all
            side: "buy" or "sell", empty for both
            page: Page number (venue default 1)
            limit: Page size (venue default 10)
        """
        query: dict[str, str] = {"market_type": market_type}
        if market:
            query["market"] = market
        if side:
            query["side"] = side
        if page:
            query["page"] = str(page)
        if limit:
            query["limit"] = str(limit)

        response = await self._transport.request(
            "GET", "/v2/spot/finished-order", query, authenticated=True
        )
        return decode_list(response, SpotOrder)
