"""
Tests for the OrderManager.

Tests order placement, immediate and deferred execution, cancellation,
the pending-order sweep and order queries.
"""

from decimal import Decimal
import logging
import pytest
from conftest import USER, limit, market
from trading.events.errors import (
    AlreadyTerminalError,
    ForbiddenError,
    InvalidOrderError,
    InvalidSymbolError,
    MissingPriceError,
    NotFoundError,
)
from trading.events.models import OrderRequest, OrderSide, OrderStatus, OrderType


def test_market_buy_executes_immediately(manager, store):
    """Test MARKET BUY is EXECUTED within the placement call."""
    order = manager.place_order(market("TCS", "BUY", 5))

    assert order.status == OrderStatus.EXECUTED
    assert order.executed_quantity == 5
    assert order.executed_price is not None
    assert len(store.trades) == 1
    assert manager.ledger.held_quantity(USER, "TCS") == 5


def test_limit_buy_above_market_executes_at_limit(manager):
    """Test marketable LIMIT BUY fills at its own limit price."""
    order = manager.place_order(limit("TCS", "BUY", 2, "4000.00"))

    assert order.status == OrderStatus.EXECUTED
    assert order.executed_price == Decimal("4000.00")


def test_limit_buy_below_market_stays_placed(manager, store):
    """Test LIMIT BUY under the market rests as PLACED."""
    order = manager.place_order(limit("TCS", "BUY", 2, "3800.00"))

    assert order.status == OrderStatus.PLACED
    assert order.executed_price is None
    assert store.trades == {}


def test_limit_buy_executes_after_price_drop(manager):
    """Test resting LIMIT BUY executes once the price falls to the limit."""
    order = manager.place_order(limit("TCS", "BUY", 2, "3800.00"))
    manager.update_price("TCS", Decimal("3800.00"))

    executed = manager.attempt_execution(order.order_id)

    assert executed is order
    assert order.status == OrderStatus.EXECUTED
    assert order.executed_price == Decimal("3800.00")


def test_limit_sell_waits_for_price_rise(manager):
    """Test LIMIT SELL above market executes once the price rises."""
    manager.place_order(market("INFY", "BUY", 10))
    order = manager.place_order(limit("INFY", "SELL", 10, "1900.00"))
    assert order.status == OrderStatus.PLACED

    manager.update_price("INFY", Decimal("1900.50"))
    executed = manager.process_pending_orders()

    assert executed == [order]
    assert order.executed_price == Decimal("1900.00")
    assert manager.ledger.get_holdings(USER) == []


def test_invalid_symbol(manager, store):
    """Test unknown symbol is rejected before any order is created."""
    with pytest.raises(InvalidSymbolError, match="Invalid instrument symbol"):
        manager.place_order(market("INVALID", "BUY", 1))
    assert store.orders == {}


@pytest.mark.parametrize("price", [None, Decimal("0"), Decimal("-1")])
def test_limit_without_price(manager, price):
    """Test LIMIT order needs a positive price."""
    request = OrderRequest(symbol="TCS", side=OrderSide.BUY, order_type=OrderType.LIMIT,
                           quantity=1, price=price)

    with pytest.raises(MissingPriceError):
        manager.place_order(request)


@pytest.mark.parametrize("price", ["abc", float("nan"), float("inf"), "1e400"])
def test_limit_with_unusable_price(manager, store, price):
    """Test LIMIT order with a non-numeric or non-finite price."""
    request = OrderRequest(symbol="TCS", side="BUY", order_type="LIMIT", quantity=1, price=price)

    with pytest.raises(MissingPriceError):
        manager.place_order(request)
    assert store.orders == {}


@pytest.mark.parametrize("quantity", [0, -3, 1.5, True, 10001])
def test_invalid_quantity(manager, quantity):
    """Test quantity must be a positive integer within the cap."""
    with pytest.raises(InvalidOrderError):
        manager.place_order(market("TCS", "BUY", quantity))


def test_default_user_applied(manager):
    """Test orders without a user belong to the configured mock user."""
    request = OrderRequest(symbol="HDFC", side="BUY", order_type="MARKET", quantity=1)

    order = manager.place_order(request)

    assert order.user_id == "user_001"


def test_sell_without_holdings_stays_placed(manager, store, caplog):
    """Test SELL with nothing held is not executed and leaves no trade."""
    with caplog.at_level(logging.WARNING):
        order = manager.place_order(market("RELIANCE", "SELL", 5))

    assert order.status == OrderStatus.PLACED
    assert order.executed_price is None
    assert store.trades == {}
    assert "not executed" in caplog.text


def test_sell_retried_after_buy(manager):
    """Test a SELL left PLACED executes on a sweep once shares are held."""
    sell = manager.place_order(market("RELIANCE", "SELL", 5))
    manager.place_order(market("RELIANCE", "BUY", 8))

    executed = manager.process_pending_orders()

    assert executed == [sell]
    assert manager.ledger.held_quantity(USER, "RELIANCE") == 3


def test_attempt_execution_is_idempotent(manager, store):
    """Test re-executing an EXECUTED or CANCELLED order is a no-op."""
    executed = manager.place_order(market("TCS", "BUY", 1))
    resting = manager.place_order(limit("TCS", "BUY", 1, "1.00"))
    manager.cancel_order(resting.order_id, USER)
    price_before = executed.executed_price

    assert manager.attempt_execution(executed.order_id) is None
    assert manager.attempt_execution(resting.order_id) is None
    assert manager.attempt_execution("missing") is None
    assert executed.executed_price == price_before
    assert resting.status == OrderStatus.CANCELLED
    assert len(store.trades) == 1


def test_cancel_placed_order(manager):
    """Test cancelling a PLACED order."""
    order = manager.place_order(limit("TCS", "BUY", 1, "1.00"))

    cancelled = manager.cancel_order(order.order_id, USER)

    assert cancelled.status == OrderStatus.CANCELLED


def test_cancel_other_users_order(manager):
    """Test cancelling another user's order is forbidden."""
    order = manager.place_order(limit("TCS", "BUY", 1, "1.00"))

    with pytest.raises(ForbiddenError):
        manager.cancel_order(order.order_id, "intruder")
    assert order.status == OrderStatus.PLACED


def test_cancel_executed_order(manager):
    """Test executed orders cannot be cancelled."""
    order = manager.place_order(market("TCS", "BUY", 1))

    with pytest.raises(AlreadyTerminalError, match="executed"):
        manager.cancel_order(order.order_id, USER)


def test_cancel_twice(manager):
    """Test a cancelled order cannot be cancelled again."""
    order = manager.place_order(limit("TCS", "BUY", 1, "1.00"))
    manager.cancel_order(order.order_id, USER)

    with pytest.raises(AlreadyTerminalError, match="already cancelled"):
        manager.cancel_order(order.order_id, USER)


def test_cancel_unknown_order(manager):
    """Test cancelling a missing order raises NotFoundError."""
    with pytest.raises(NotFoundError):
        manager.cancel_order("missing", USER)


def test_sweep_skips_cancelled(manager):
    """Test cancelled orders are excluded from later sweeps."""
    kept = manager.place_order(limit("HDFC", "BUY", 1, "1600.00"))
    dropped = manager.place_order(limit("HDFC", "BUY", 1, "1600.00"))
    manager.cancel_order(dropped.order_id, USER)
    manager.update_price("HDFC", Decimal("1590.00"))

    executed = manager.process_pending_orders()

    assert executed == [kept]
    assert dropped.status == OrderStatus.CANCELLED


def test_sweep_spans_users(manager):
    """Test the sweep covers pending orders of every user."""
    a = manager.place_order(limit("INFY", "BUY", 1, "1700.00", user_id="alice"))
    b = manager.place_order(limit("INFY", "BUY", 1, "1700.00", user_id="bob"))
    manager.update_price("INFY", Decimal("1650.00"))

    assert manager.process_pending_orders() == [a, b]


def test_sweep_with_nothing_pending(manager):
    """Test an empty sweep returns an empty list."""
    assert manager.process_pending_orders() == []


def test_get_order(manager):
    """Test order lookup by id."""
    order = manager.place_order(market("TCS", "BUY", 1))

    assert manager.get_order(order.order_id) is order
    with pytest.raises(NotFoundError):
        manager.get_order("missing")


def test_list_orders_filters(manager):
    """Test user order listing, newest first, with filters."""
    first = manager.place_order(market("TCS", "BUY", 1))
    second = manager.place_order(limit("INFY", "BUY", 1, "1.00"))
    manager.place_order(market("TCS", "BUY", 1, user_id="bob"))

    assert manager.list_orders(USER) == [second, first]
    assert manager.list_orders(USER, status=OrderStatus.PLACED) == [second]
    assert manager.list_orders(USER, symbol="tcs") == [first]
    assert manager.list_orders(USER, side=OrderSide.SELL) == []
