"""
Error kinds raised by the trading core.

Each error carries an ``http_status`` hint so a transport layer can map it
to a response without inspecting messages.
"""


class TradingError(Exception):
    """Base class for all trading core errors."""
    http_status = 500


class InvalidSymbolError(TradingError, ValueError):
    """Order references a symbol that is not in the instrument registry."""
    http_status = 400


class MissingPriceError(TradingError, ValueError):
    """LIMIT order placed without a positive limit price."""
    http_status = 400


class InvalidOrderError(TradingError, ValueError):
    """Order request fails basic shape checks (quantity bounds)."""
    http_status = 400


class InvalidPriceError(TradingError, ValueError):
    """Price update with a non-positive value."""
    http_status = 400


class InsufficientHoldingsError(TradingError):
    """SELL quantity exceeds the currently held quantity."""
    http_status = 400

    def __init__(self, symbol: str, available: int, required: int):
        super().__init__(
            f"Insufficient quantity for {symbol}. "
            f"Available: {available}, Required: {required}"
        )
        self.symbol = symbol
        self.available = available
        self.required = required


class NotFoundError(TradingError, KeyError):
    """Order, trade or instrument lookup miss."""
    http_status = 404

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class ForbiddenError(TradingError):
    """Access to a record owned by another user."""
    http_status = 403


class AlreadyTerminalError(TradingError):
    """Cancel requested on an order that is already executed or cancelled."""
    http_status = 400


class InvalidTransitionError(TradingError):
    """Order status change not permitted by the lifecycle state machine."""
    http_status = 409


class InternalFailureError(TradingError):
    """Unexpected failure inside the core."""
    http_status = 500
