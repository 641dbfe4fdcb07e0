"""Pytest fixtures shared by the trading test suite."""

import random
from decimal import Decimal

import pytest

from trading.engine.execution import ExecutionEngine
from trading.engine.order_manager import OrderManager
from trading.engine.store import TradingStore
from trading.engine.trade_recorder import TradeRecorder
from trading.events.models import OrderRequest, OrderSide, OrderType
from trading.market.instruments import InstrumentRegistry
from trading.portfolio.ledger import PortfolioLedger

USER = "user_001"


@pytest.fixture
def store() -> TradingStore:
    """Fresh store seeded with the sample instruments."""
    return TradingStore.seeded()


@pytest.fixture
def registry(store) -> InstrumentRegistry:
    """Registry with price jitter disabled so prices only move when set."""
    return InstrumentRegistry(store, rng=random.Random(7), jitter_probability=0.0)


@pytest.fixture
def engine() -> ExecutionEngine:
    return ExecutionEngine(rng=random.Random(11))


@pytest.fixture
def recorder(store) -> TradeRecorder:
    return TradeRecorder(store, rng=random.Random(13))


@pytest.fixture
def ledger(store, registry) -> PortfolioLedger:
    return PortfolioLedger(store, registry)


@pytest.fixture
def manager(store, registry, engine, recorder, ledger) -> OrderManager:
    return OrderManager(store, registry, engine, recorder, ledger)


def market(symbol: str, side: str, quantity: int, user_id: str = USER) -> OrderRequest:
    """Build a MARKET order request."""
    return OrderRequest(
        symbol=symbol,
        side=OrderSide(side),
        order_type=OrderType.MARKET,
        quantity=quantity,
        user_id=user_id,
    )


def limit(symbol: str, side: str, quantity: int, price: str, user_id: str = USER) -> OrderRequest:
    """Build a LIMIT order request."""
    return OrderRequest(
        symbol=symbol,
        side=OrderSide(side),
        order_type=OrderType.LIMIT,
        quantity=quantity,
        price=Decimal(price),
        user_id=user_id,
    )
