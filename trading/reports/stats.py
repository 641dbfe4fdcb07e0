"""
Read-only statistics over orders, trades and instruments, plus pagination.

All functions are pure folds over records supplied by the caller.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Generic, List, Optional, Sequence, TypeVar

from trading.events.models import (
    Instrument,
    Order,
    OrderSide,
    OrderStatus,
    OrderType,
    Trade,
    round_money,
)

T = TypeVar("T")


@dataclass(frozen=True)
class OrderStats:
    total_orders: int
    executed_orders: int
    pending_orders: int
    cancelled_orders: int
    buy_orders: int
    sell_orders: int
    market_orders: int
    limit_orders: int
    success_rate: Decimal


def order_stats(orders: Sequence[Order]) -> OrderStats:
    """Counts by status, side and style; success rate is executed / total in %."""
    total = len(orders)
    executed = sum(1 for o in orders if o.status == OrderStatus.EXECUTED)
    return OrderStats(
        total_orders=total,
        executed_orders=executed,
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PLACED),
        cancelled_orders=sum(1 for o in orders if o.status == OrderStatus.CANCELLED),
        buy_orders=sum(1 for o in orders if o.side == OrderSide.BUY),
        sell_orders=sum(1 for o in orders if o.side == OrderSide.SELL),
        market_orders=sum(1 for o in orders if o.order_type == OrderType.MARKET),
        limit_orders=sum(1 for o in orders if o.order_type == OrderType.LIMIT),
        success_rate=round_money(Decimal(executed) / total * 100) if total else Decimal("0"),
    )


@dataclass(frozen=True)
class TradeStats:
    total_trades: int
    total_volume: int
    total_value: Decimal
    buy_trades: int
    sell_trades: int
    unique_symbols: int
    average_trade_size: Decimal
    largest_trade: Optional[Trade]
    smallest_trade: Optional[Trade]
    today_trades: int
    this_week_trades: int
    this_month_trades: int


def trade_stats(trades: Sequence[Trade], now: Optional[datetime] = None) -> TradeStats:
    """
    Aggregate trade history.

    Args:
        trades: Trades to summarize
        now: Reference time for the today / 7-day / 30-day buckets

    Returns:
        TradeStats; largest/smallest are by total amount
    """
    if not trades:
        return TradeStats(0, 0, Decimal("0"), 0, 0, 0, Decimal("0"), None, None, 0, 0, 0)

    now = now or datetime.now()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    total_volume = sum(t.quantity for t in trades)
    by_amount = sorted(trades, key=lambda t: t.total_amount, reverse=True)

    return TradeStats(
        total_trades=len(trades),
        total_volume=total_volume,
        total_value=round_money(sum((t.total_amount for t in trades), Decimal("0"))),
        buy_trades=sum(1 for t in trades if t.side == OrderSide.BUY),
        sell_trades=sum(1 for t in trades if t.side == OrderSide.SELL),
        unique_symbols=len({t.symbol for t in trades}),
        average_trade_size=round_money(Decimal(total_volume) / len(trades)),
        largest_trade=by_amount[0],
        smallest_trade=by_amount[-1],
        today_trades=sum(1 for t in trades if t.executed_at >= start_of_day),
        this_week_trades=sum(1 for t in trades if t.executed_at >= week_ago),
        this_month_trades=sum(1 for t in trades if t.executed_at >= month_ago),
    )


@dataclass(frozen=True)
class MarketStats:
    total_instruments: int
    average_price: Decimal
    highest_price: Optional[Decimal]
    lowest_price: Optional[Decimal]
    exchanges: List[str]
    instrument_types: List[str]


def market_stats(instruments: Sequence[Instrument]) -> MarketStats:
    if not instruments:
        return MarketStats(0, Decimal("0"), None, None, [], [])

    prices = [i.last_price for i in instruments]
    return MarketStats(
        total_instruments=len(instruments),
        average_price=round_money(sum(prices, Decimal("0")) / len(prices)),
        highest_price=max(prices),
        lowest_price=min(prices),
        exchanges=sorted({i.exchange.value for i in instruments}),
        instrument_types=sorted({i.instrument_type.value for i in instruments}),
    )


@dataclass(frozen=True)
class Page(Generic[T]):
    data: List[T]
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1


def paginate(items: Sequence[T], page: int = 1, limit: int = 10) -> Page[T]:
    """Slice items into a 1-based page."""
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")
    offset = (page - 1) * limit
    return Page(
        data=list(items[offset:offset + limit]),
        current_page=page,
        total_pages=math.ceil(len(items) / limit),
        total_items=len(items),
        items_per_page=limit,
    )
