"""Gate v4 REST response models.

Unknown fields are ignored. Second-resolution times arrive as strings and
are coerced to int.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spot_connector.domain.types import PriceLevel

ORDER_TYPE_LIMIT = "limit"

ORDER_STATUS_OPEN = "open"
ORDER_STATUS_CLOSED = "closed"
ORDER_STATUS_CANCELLED = "cancelled"

ACCOUNT_SPOT = "spot"


class GateModel(BaseModel):
    """Base for Gate payloads."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class Currency(GateModel):
    currency: str
    delisted: bool = False
    withdraw_disabled: bool = False
    withdraw_delayed: bool = False
    deposit_disabled: bool = False
    trade_disabled: bool = False


class CurrencyPair(GateModel):
    """Trading rules for one pair.

    A null minimum amount means no limit.
    """

    id: str
    base: str
    quote: str
    fee: Decimal = Decimal("0")
    min_base_amount: Decimal | None = None
    min_quote_amount: Decimal | None = None
    amount_precision: int = 0
    precision: int = 0
    trade_status: str = ""
    sell_start: int = 0
    buy_start: int = 0


class OrderBook(GateModel):
    """Order book snapshot for one pair.

    Levels arrive as [price, size] string pairs.
    """

    pair: str
    asks: list[PriceLevel] = Field(default_factory=list)
    bids: list[PriceLevel] = Field(default_factory=list)
    current: int | None = None
    update: int | None = None

    @field_validator("asks", "bids", mode="before")
    @classmethod
    def parse_levels(cls, v: Any) -> Any:
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        try:
            return [
                PriceLevel.from_pair(level) if isinstance(level, list | tuple) else level
                for level in v
            ]
        except ArithmeticError as e:
            raise ValueError(f"Invalid price level: {e}") from e


class Account(GateModel):
    currency: str
    available: Decimal
    locked: Decimal


class Order(GateModel):
    """A spot order."""

    id: str
    currency_pair: str
    text: str = ""
    create_time: int = 0
    update_time: int = 0
    create_time_ms: int = 0
    update_time_ms: int = 0
    status: str = ""
    type: str = ORDER_TYPE_LIMIT
    account: str = ACCOUNT_SPOT
    side: str = ""
    amount: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    time_in_force: str = ""
    iceberg: Decimal = Decimal("0")
    left: Decimal = Decimal("0")
    fill_price: Decimal = Decimal("0")
    filled_total: Decimal = Decimal("0")
    fee: Decimal = Decimal("0")
    fee_currency: str = ""
    point_fee: Decimal = Decimal("0")
    gt_fee: Decimal = Decimal("0")
    gt_discount: bool = False
    rebated_fee: Decimal = Decimal("0")
    rebated_fee_currency: str = ""


class OpenOrders(GateModel):
    """Open orders grouped by pair."""

    currency_pair: str
    total: int = 0
    orders: list[Order] = Field(default_factory=list)


class ChainAddress(GateModel):
    chain: str
    address: str
    payment_id: str = ""
    payment_name: str = ""
    obtain_failed: int = 0


class DepositAddress(GateModel):
    currency: str
    address: str
    multichain_addresses: list[ChainAddress] = Field(default_factory=list)


class Withdrawal(GateModel):
    id: str
    currency: str
    amount: Decimal
    address: str = ""
    timestamp: int = 0
    txid: str = ""
    memo: str = ""
    status: str = ""
    chain: str = ""
