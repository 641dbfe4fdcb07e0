"""
Core domain models for the trading system.

This module defines the fundamental data structures for instruments,
orders, trades and portfolio holdings. Money is carried as Decimal and
rounded to two places before it leaves the core.
"""

from enum import Enum
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from datetime import datetime
from typing import Dict, Optional, Set

from trading.events.errors import InvalidOrderError, InvalidTransitionError

TWO_PLACES = Decimal("0.01")


def round_money(value) -> Decimal:
    """Round a numeric value to 2 decimal places (half up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def parse_price(value) -> Optional[Decimal]:
    """Finite amount rounded to 2 places, or None when value is not a number."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        if not amount.is_finite():
            return None
        return round_money(amount)
    except (InvalidOperation, ValueError):
        return None


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(round_money(value)) if value is not None else None


class OrderSide(Enum):
    """Side of the order: buy or sell."""
    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    """Style of order: limit (price specified) or market (immediate execution)."""
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class OrderStatus(Enum):
    """Current status of an order in its lifecycle."""
    NEW = "NEW"
    PLACED = "PLACED"
    EXECUTED = "EXECUTED"
    CANCELLED = "CANCELLED"


# Allowed status transitions; anything absent is rejected
STATUS_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
    OrderStatus.NEW: {OrderStatus.PLACED},
    OrderStatus.PLACED: {OrderStatus.EXECUTED, OrderStatus.CANCELLED},
    OrderStatus.EXECUTED: set(),
    OrderStatus.CANCELLED: set(),
}


class Exchange(Enum):
    NSE = "NSE"
    BSE = "BSE"


class InstrumentType(Enum):
    EQUITY = "EQUITY"
    DERIVATIVE = "DERIVATIVE"
    COMMODITY = "COMMODITY"


@dataclass
class Instrument:
    """
    A tradable instrument with its current simulated price.

    Attributes:
        symbol: Unique ticker symbol (e.g., 'RELIANCE')
        exchange: Listing exchange
        instrument_type: EQUITY, DERIVATIVE or COMMODITY
        last_price: Current simulated market price
        company_name: Display name of the issuer
        sector: Sector used for allocation analytics
    """
    symbol: str
    exchange: Exchange
    instrument_type: InstrumentType
    last_price: Decimal
    company_name: str = ""
    sector: str = "Others"

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "exchange": self.exchange.value,
            "instrumentType": self.instrument_type.value,
            "lastTradedPrice": _money(self.last_price),
            "companyName": self.company_name,
        }


@dataclass
class Order:
    """
    Represents a trading order.

    Attributes:
        order_id: Unique identifier for the order
        user_id: Owner of the order
        symbol: Instrument symbol
        side: BUY or SELL
        order_type: LIMIT or MARKET
        quantity: Number of shares
        price: Limit price (None for market orders)
        status: Current order status
        executed_price: Fill price, set only once EXECUTED
        executed_quantity: Fill quantity, set only once EXECUTED
        created_at: When the order was created
        updated_at: When the order last changed
    """
    order_id: str
    user_id: str
    symbol: str
    side: OrderSide
    order_type: OrderType
    quantity: int
    price: Optional[Decimal]
    status: OrderStatus = OrderStatus.NEW
    executed_price: Optional[Decimal] = None
    executed_quantity: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def transition_to(self, status: OrderStatus) -> None:
        """Move to a new status, enforcing the lifecycle state machine."""
        if status not in STATUS_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Order {self.order_id} cannot move from "
                f"{self.status.value} to {status.value}"
            )
        self.status = status
        self.updated_at = datetime.now()

    def mark_executed(self, price: Decimal) -> None:
        """Transition to EXECUTED and populate the fill fields."""
        self.transition_to(OrderStatus.EXECUTED)
        self.executed_price = price
        self.executed_quantity = self.quantity

    def is_complete(self) -> bool:
        """Check if order is in a terminal state."""
        return not STATUS_TRANSITIONS[self.status]

    def to_dict(self) -> dict:
        return {
            "id": self.order_id,
            "userId": self.user_id,
            "symbol": self.symbol,
            "orderType": self.side.value,
            "orderStyle": self.order_type.value,
            "quantity": self.quantity,
            "price": _money(self.price),
            "status": self.status.value,
            "executedPrice": _money(self.executed_price),
            "executedQuantity": self.executed_quantity,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Trade:
    """
    Represents an executed fill of a single order.

    Attributes:
        trade_id: Unique identifier for the trade
        order_id: Order that produced the trade
        user_id: Owner of the order
        symbol: Instrument symbol
        side: BUY or SELL
        quantity: Number of shares traded
        price: Execution price
        total_amount: quantity * price
        reference: Human-readable trade reference (TXN...)
        executed_at: When the trade occurred
    """
    trade_id: str
    order_id: str
    user_id: str
    symbol: str
    side: OrderSide
    quantity: int
    price: Decimal
    total_amount: Decimal
    reference: str
    executed_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.trade_id,
            "orderId": self.order_id,
            "userId": self.user_id,
            "symbol": self.symbol,
            "orderType": self.side.value,
            "quantity": self.quantity,
            "price": _money(self.price),
            "totalAmount": _money(self.total_amount),
            "tradeReference": self.reference,
            "executedAt": self.executed_at.isoformat(),
        }


@dataclass
class Holding:
    """
    Aggregate position of one user in one symbol.

    A holding with zero quantity carries zero cost basis and average price
    and is not part of the visible portfolio.
    """
    user_id: str
    symbol: str
    quantity: int = 0
    total_investment: Decimal = Decimal("0")
    average_price: Decimal = Decimal("0")
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class HoldingView:
    """A holding priced against the current market at read time."""
    user_id: str
    symbol: str
    quantity: int
    average_price: Decimal
    total_investment: Decimal
    current_price: Decimal
    current_value: Decimal
    total_return: Decimal
    total_return_pct: Decimal
    updated_at: datetime

    @property
    def is_profitable(self) -> bool:
        return self.current_value > self.total_investment

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "symbol": self.symbol,
            "quantity": self.quantity,
            "averagePrice": _money(self.average_price),
            "totalInvestment": _money(self.total_investment),
            "currentPrice": _money(self.current_price),
            "currentValue": _money(self.current_value),
            "totalReturn": _money(self.total_return),
            "totalReturnPercentage": _money(self.total_return_pct),
            "returnStatus": "PROFIT" if self.total_return >= 0 else "LOSS",
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass
class OrderRequest:
    """
    Validated order placement request from the transport layer.

    side and order_type accept either the enum or its string value.
    user_id defaults to the configured mock user when omitted.
    """
    symbol: str
    side: OrderSide
    order_type: OrderType
    quantity: int
    price: Optional[Decimal] = None
    user_id: Optional[str] = None

    def __post_init__(self):
        try:
            self.side = OrderSide(self.side)
            self.order_type = OrderType(self.order_type)
        except ValueError as exc:
            raise InvalidOrderError(str(exc)) from exc
        if self.price is not None:
            # Unparseable prices become None; LIMIT validation rejects them
            self.price = parse_price(self.price)
