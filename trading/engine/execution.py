"""
Order execution rules against a simulated market price.

Decides whether a resting order is executable at the current price and
what price it fills at:
- MARKET orders always execute, at the market price with small slippage
- LIMIT BUY executes when price <= limit, LIMIT SELL when price >= limit
- LIMIT orders fill exactly at their limit price

Orders fill completely or not at all.
"""

import random
from decimal import Decimal
from typing import Optional

from trading.config import get_settings
from trading.events.models import Order, OrderSide, OrderType, round_money


class ExecutionEngine:
    """Pure execution decisions; never touches the store."""

    def __init__(self, rng: Optional[random.Random] = None, max_slippage_pct: Optional[float] = None):
        self.rng = rng or random.Random()
        self.max_slippage_pct = (
            get_settings().max_slippage_pct if max_slippage_pct is None else max_slippage_pct
        )

    def can_execute(self, order: Order, current_price: Decimal) -> bool:
        """Check whether order would fill at current_price."""
        if order.order_type == OrderType.MARKET:
            return True

        if order.side == OrderSide.BUY:
            return current_price <= order.price
        return current_price >= order.price

    def execution_price(self, order: Order, current_price: Decimal) -> Decimal:
        """Price the order fills at, rounded to 2 decimals."""
        if order.order_type == OrderType.LIMIT:
            return round_money(order.price)

        slippage = Decimal(str(self.rng.uniform(-self.max_slippage_pct, self.max_slippage_pct))) / 100
        return round_money(current_price * (1 + slippage))
