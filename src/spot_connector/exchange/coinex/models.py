"""CoinEx v2 REST response models.

Only the fields the connector reads are declared; unknown fields are
ignored so venue additions do not break decoding.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

WITHDRAW_METHOD_ON_CHAIN = "on_chain"
WITHDRAW_METHOD_INTER_USER = "inter_user"

MARKET_TYPE_SPOT = "SPOT"
MARKET_TYPE_MARGIN = "MARGIN"
MARKET_TYPE_FUTURES = "FUTURES"

ORDER_TYPE_LIMIT = "limit"
ORDER_TYPE_MARKET = "market"
ORDER_TYPE_MAKER_ONLY = "maker_only"
ORDER_TYPE_IOC = "ioc"
ORDER_TYPE_FOK = "fok"


class CoinExModel(BaseModel):
    """Base for CoinEx payloads."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class SpotMarket(CoinExModel):
    """Trading rules for one market."""

    market: str
    base_ccy: str
    quote_ccy: str
    maker_fee_rate: Decimal = Decimal("0")
    taker_fee_rate: Decimal = Decimal("0")
    min_amount: Decimal = Decimal("0")
    base_ccy_precision: int = 0
    quote_ccy_precision: int = 0
    is_amm_available: bool = False
    is_margin_available: bool = False


class SpotKLine(CoinExModel):
    """One candle."""

    market: str
    created_at: int
    open: Decimal
    close: Decimal
    high: Decimal
    low: Decimal
    volume: Decimal
    value: Decimal


class Asset(CoinExModel):
    ccy: str
    deposit_enabled: bool = False
    withdraw_enabled: bool = False
    inter_transfer_enabled: bool = False
    is_st: bool = False


class Chain(CoinExModel):
    """Deposit and withdrawal settings of one asset on one chain."""

    chain: str
    min_deposit_amount: Decimal = Decimal("0")
    min_withdraw_amount: Decimal = Decimal("0")
    deposit_enabled: bool = False
    withdraw_enabled: bool = False
    deposit_delay_minutes: int = 0
    safe_confirmations: int = 0
    irreversible_confirmations: int = 0
    deflation_rate: str = ""
    withdrawal_fee: Decimal = Decimal("0")
    withdrawal_precision: int = 0
    memo: str = ""
    is_memo_required_for_deposit: bool = False
    explorer_asset_url: str = ""


class DepositWithdrawConfig(CoinExModel):
    asset: Asset
    chains: list[Chain] = Field(default_factory=list)


class DepositAddress(CoinExModel):
    address: str
    memo: str = ""


class Withdrawal(CoinExModel):
    """A withdrawal record as returned on submission."""

    withdraw_id: int
    ccy: str
    amount: Decimal
    created_at: int = 0
    chain: str = ""
    actual_amount: Decimal = Decimal("0")
    withdraw_method: str = ""
    memo: str = ""
    tx_fee: Decimal = Decimal("0")
    tx_id: str = ""
    to_address: str = ""
    confirmations: int = 0
    explorer_address_url: str = ""
    explorer_tx_url: str = ""
    status: str = ""
    remark: str = ""


class SpotBalance(CoinExModel):
    ccy: str
    available: Decimal
    frozen: Decimal


class SpotOrder(CoinExModel):
    """A spot order.

    last_fill_amount, last_fill_price and status are not always returned.
    """

    order_id: int
    market: str
    market_type: str = MARKET_TYPE_SPOT
    ccy: str = ""
    side: str = ""
    type: str = ""
    amount: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    unfilled_amount: Decimal = Decimal("0")
    filled_amount: Decimal = Decimal("0")
    filled_value: Decimal = Decimal("0")
    client_id: str = ""
    base_fee: Decimal = Decimal("0")
    quote_fee: Decimal = Decimal("0")
    discount_fee: Decimal = Decimal("0")
    maker_fee_rate: Decimal = Decimal("0")
    taker_fee_rate: Decimal = Decimal("0")
    created_at: int = 0
    updated_at: int = 0
    last_fill_amount: str = ""
    last_fill_price: str = ""
    status: str = ""
