"""
Order lifecycle manager.

High-level entry point for the trading system. Creates orders, moves them
through NEW -> PLACED -> EXECUTED | CANCELLED and triggers execution,
both when an order is placed and on an on-demand sweep of pending orders.

Execution is a small transaction: order status, trade record and holding
update are committed together or not at all.
"""

import logging
import random
import threading
import uuid
from typing import List, Optional

from trading.config import get_settings
from trading.engine.execution import ExecutionEngine
from trading.engine.store import TradingStore
from trading.engine.trade_recorder import TradeRecorder
from trading.events.errors import (
    AlreadyTerminalError,
    ForbiddenError,
    InternalFailureError,
    InvalidOrderError,
    InvalidSymbolError,
    MissingPriceError,
    NotFoundError,
    TradingError,
)
from trading.events.models import (
    Instrument,
    Order,
    OrderRequest,
    OrderSide,
    OrderStatus,
    OrderType,
    parse_price,
)
from trading.market.instruments import InstrumentRegistry
from trading.portfolio.ledger import PortfolioLedger
from trading.reports.stats import OrderStats, order_stats

logger = logging.getLogger(__name__)


class OrderManager:
    """Owns orders and orchestrates their execution."""

    def __init__(
        self,
        store: TradingStore,
        registry: InstrumentRegistry,
        engine: ExecutionEngine,
        recorder: TradeRecorder,
        ledger: PortfolioLedger,
    ):
        self.store = store
        self.registry = registry
        self.engine = engine
        self.recorder = recorder
        self.ledger = ledger
        self.settings = get_settings()
        # Serializes every mutation of shared state
        self._lock = threading.RLock()

    @classmethod
    def create(cls, store: Optional[TradingStore] = None, seed: Optional[int] = None) -> "OrderManager":
        """
        Wire a manager with its collaborators over one store.

        Args:
            store: Store to use (a freshly seeded one if omitted)
            seed: Seed for every random source, for reproducible runs

        Returns:
            Ready-to-use OrderManager
        """
        store = store or TradingStore.seeded()
        rng = random.Random(seed)
        registry = InstrumentRegistry(store, rng=rng)
        return cls(
            store=store,
            registry=registry,
            engine=ExecutionEngine(rng=rng),
            recorder=TradeRecorder(store, rng=rng),
            ledger=PortfolioLedger(store, registry),
        )

    def _validate(self, request: OrderRequest) -> None:
        quantity = request.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidOrderError(f"Quantity must be a positive integer, got {quantity!r}")
        if quantity > self.settings.max_order_quantity:
            raise InvalidOrderError(
                f"Quantity {quantity} exceeds maximum of {self.settings.max_order_quantity}"
            )

        if not self.registry.exists(request.symbol):
            raise InvalidSymbolError(f"Invalid instrument symbol: {request.symbol}")

        if request.order_type == OrderType.LIMIT:
            price = parse_price(request.price) if request.price is not None else None
            if price is None or price <= 0:
                raise MissingPriceError("Price is required for LIMIT orders")

    def place_order(self, request: OrderRequest) -> Order:
        """
        Place an order and try to execute it immediately.

        Args:
            request: Order placement request

        Returns:
            The order, EXECUTED if it filled right away, otherwise PLACED

        Raises:
            InvalidOrderError: If quantity is out of bounds
            InvalidSymbolError: If the symbol is not tradable
            MissingPriceError: If a LIMIT order has no positive price
        """
        with self._lock:
            self._validate(request)

            order = Order(
                order_id=str(uuid.uuid4()),
                user_id=request.user_id or self.settings.default_user_id,
                symbol=request.symbol,
                side=request.side,
                order_type=request.order_type,
                quantity=request.quantity,
                price=request.price,
            )
            self.store.orders[order.order_id] = order
            order.transition_to(OrderStatus.PLACED)
            logger.info(
                "Order %s placed: %s %s %d %s",
                order.order_id, order.order_type.value, order.side.value,
                order.quantity, order.symbol,
            )

            self.attempt_execution(order.order_id)
            return order

    def execute_order(self, order_id: str) -> Optional[Order]:
        """
        Execute a PLACED order if the market allows it.

        Returns:
            The executed order, or None if the order is absent, not PLACED,
            or its limit is not reached at the current price

        Raises:
            InsufficientHoldingsError: If a SELL exceeds the held quantity;
                the order is left PLACED with nothing recorded
            InternalFailureError: If the fill fails unexpectedly; the order is
                rolled back to PLACED and the original error is chained
        """
        with self._lock:
            order = self.store.orders.get(order_id)
            if order is None or order.status != OrderStatus.PLACED:
                return None

            # One price read per attempt
            current_price = self.registry.get_price(order.symbol)
            if not self.engine.can_execute(order, current_price):
                return None

            if order.side == OrderSide.SELL:
                self.ledger.ensure_can_sell(order.user_id, order.symbol, order.quantity)

            fill_price = self.engine.execution_price(order, current_price)
            self._commit_fill(order, fill_price)

            logger.info(
                "Order %s executed at %s for %d shares of %s",
                order.order_id, fill_price, order.quantity, order.symbol,
            )
            return order

    def _commit_fill(self, order: Order, fill_price) -> None:
        previous = (order.status, order.executed_price, order.executed_quantity, order.updated_at)
        trade = None
        try:
            order.mark_executed(fill_price)
            trade = self.recorder.record(order, fill_price)
            self.ledger.apply_fill(
                order.user_id, order.symbol, order.quantity, fill_price, order.side
            )
        except Exception as exc:
            # Roll back; the ledger validates before mutating so it needs no undo
            order.status, order.executed_price, order.executed_quantity, order.updated_at = previous
            if trade is not None:
                self.recorder.discard(trade.trade_id)
            if isinstance(exc, TradingError):
                raise
            raise InternalFailureError(f"Failed to execute order {order.order_id}") from exc

    def attempt_execution(self, order_id: str) -> Optional[Order]:
        """
        Try to execute an order, reporting failures as "not executed".

        Returns:
            The executed order, or None; failed attempts leave the order
            PLACED so a later sweep can retry it
        """
        try:
            return self.execute_order(order_id)
        except InternalFailureError:
            logger.exception("Failed to execute order %s", order_id)
        except TradingError as exc:
            logger.warning("Order %s not executed: %s", order_id, exc)
        except Exception:
            logger.exception("Failed to execute order %s", order_id)
        return None

    def cancel_order(self, order_id: str, user_id: str) -> Order:
        """
        Cancel a pending order.

        Raises:
            NotFoundError: If the order does not exist
            ForbiddenError: If the order belongs to another user
            AlreadyTerminalError: If the order is EXECUTED or CANCELLED
        """
        with self._lock:
            order = self.get_order(order_id)

            if order.user_id != user_id:
                raise ForbiddenError("Unauthorized to cancel this order")
            if order.status == OrderStatus.EXECUTED:
                raise AlreadyTerminalError("Cannot cancel executed order")
            if order.status == OrderStatus.CANCELLED:
                raise AlreadyTerminalError("Order is already cancelled")

            order.transition_to(OrderStatus.CANCELLED)
            logger.info("Order %s cancelled", order_id)
            return order

    def process_pending_orders(self) -> List[Order]:
        """
        Attempt execution of every PLACED order across all users.

        Best-effort: an order that fails is logged and skipped.

        Returns:
            Orders that executed during this sweep, in placement order
        """
        with self._lock:
            pending = [o for o in self.store.orders.values() if o.status == OrderStatus.PLACED]
            executed = []
            for order in pending:
                result = self.attempt_execution(order.order_id)
                if result is not None:
                    executed.append(result)

            logger.info("Processed %d pending orders, %d executed", len(pending), len(executed))
            return executed

    def update_price(self, symbol: str, price) -> Instrument:
        """Set an instrument price under the manager's lock."""
        with self._lock:
            return self.registry.set_price(symbol, price)

    def get_order(self, order_id: str) -> Order:
        order = self.store.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def list_orders(
        self,
        user_id: str,
        status: Optional[OrderStatus] = None,
        symbol: Optional[str] = None,
        side: Optional[OrderSide] = None,
    ) -> List[Order]:
        """User's orders matching the filters, newest first."""
        orders = [o for o in self.store.orders.values() if o.user_id == user_id]

        if status is not None:
            orders = [o for o in orders if o.status == status]
        if symbol:
            orders = [o for o in orders if o.symbol.lower() == symbol.lower()]
        if side is not None:
            orders = [o for o in orders if o.side == side]

        # Stable ascending sort then reverse keeps same-timestamp orders newest first
        return list(reversed(sorted(orders, key=lambda o: o.created_at)))

    def get_order_stats(self, user_id: str) -> OrderStats:
        return order_stats(self.list_orders(user_id))
