"""
In-memory trading store.

One TradingStore instance owns every mutable map for a run (or a test).
Components receive the store explicitly; each component mutates only the
map it owns:

- InstrumentRegistry: instruments
- OrderManager: orders
- TradeRecorder: trades
- PortfolioLedger: holdings
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Tuple

from trading.events.models import (
    Exchange,
    Holding,
    Instrument,
    InstrumentType,
    Order,
    Trade,
)

logger = logging.getLogger(__name__)

SEED_INSTRUMENTS = (
    ("RELIANCE", "2450.75", "Reliance Industries Ltd", "Energy"),
    ("TCS", "3890.20", "Tata Consultancy Services Ltd", "IT Services"),
    ("INFY", "1756.85", "Infosys Ltd", "IT Services"),
    ("HDFC", "1642.30", "HDFC Bank Ltd", "Banking"),
    ("ICICIBANK", "1198.45", "ICICI Bank Ltd", "Banking"),
)


def seed_instruments() -> List[Instrument]:
    """Build the fixed instrument list loaded at startup."""
    return [
        Instrument(
            symbol=symbol,
            exchange=Exchange.NSE,
            instrument_type=InstrumentType.EQUITY,
            last_price=Decimal(price),
            company_name=name,
            sector=sector,
        )
        for symbol, price, name, sector in SEED_INSTRUMENTS
    ]


@dataclass
class TradingStore:
    """Explicitly owned container for all trading state."""
    instruments: Dict[str, Instrument] = field(default_factory=dict)
    orders: Dict[str, Order] = field(default_factory=dict)
    trades: Dict[str, Trade] = field(default_factory=dict)
    holdings: Dict[Tuple[str, str], Holding] = field(default_factory=dict)

    @classmethod
    def seeded(cls) -> "TradingStore":
        """Create a store populated with the sample instruments."""
        store = cls()
        store.load_instruments(seed_instruments())
        return store

    def load_instruments(self, instruments: List[Instrument]) -> None:
        for instrument in instruments:
            self.instruments[instrument.symbol] = instrument
        logger.info("Initialized %d instruments", len(instruments))

    def reset(self) -> None:
        """Drop orders, trades and holdings and re-seed instruments."""
        self.orders.clear()
        self.trades.clear()
        self.holdings.clear()
        self.instruments.clear()
        self.load_instruments(seed_instruments())

    def stats(self) -> dict:
        return {
            "instruments": len(self.instruments),
            "orders": len(self.orders),
            "trades": len(self.trades),
            "portfolioHoldings": len(self.holdings),
        }
