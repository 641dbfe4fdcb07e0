"""
Instrument registry.

Holds the fixed tradable symbol list and the current simulated price per
symbol. Listing instruments may nudge prices to simulate a live market;
set_price is the only other way a price changes.
"""

import logging
import random
from decimal import Decimal
from typing import Dict, List, Optional

from trading.config import get_settings
from trading.engine.store import TradingStore
from trading.events.errors import InvalidPriceError, NotFoundError
from trading.events.models import Instrument, parse_price, round_money
from trading.reports.stats import MarketStats, market_stats

logger = logging.getLogger(__name__)


def price_variation(base_price: Decimal, max_variation_pct: float, rng: random.Random) -> Decimal:
    """Return base_price moved by a uniform +/- max_variation_pct percent."""
    variation = Decimal(str(rng.uniform(-max_variation_pct, max_variation_pct))) / 100
    return round_money(base_price * (1 + variation))


class InstrumentRegistry:
    """Tradable instruments and their simulated prices."""

    def __init__(
        self,
        store: TradingStore,
        rng: Optional[random.Random] = None,
        jitter_probability: Optional[float] = None,
        jitter_pct: Optional[float] = None,
    ):
        """
        Initialize the registry over a store.

        Args:
            store: Store owning the instrument map
            rng: Random source for price jitter (defaults to a fresh Random)
            jitter_probability: Per-instrument chance of a nudge per listing
            jitter_pct: Largest nudge in percent
        """
        settings = get_settings()
        self.store = store
        self.rng = rng or random.Random()
        self.jitter_probability = (
            settings.price_jitter_probability if jitter_probability is None else jitter_probability
        )
        self.jitter_pct = settings.price_jitter_pct if jitter_pct is None else jitter_pct

    def list_instruments(self, jitter: bool = True) -> List[Instrument]:
        """
        Get all instruments, optionally simulating price movement.

        Args:
            jitter: When True each instrument may have its price nudged

        Returns:
            Instruments in registration order
        """
        instruments = list(self.store.instruments.values())
        if jitter:
            for instrument in instruments:
                if self.rng.random() < self.jitter_probability:
                    new_price = price_variation(instrument.last_price, self.jitter_pct, self.rng)
                    if new_price > 0:
                        instrument.last_price = new_price
                        logger.debug("Simulated price move %s -> %s", instrument.symbol, new_price)
        return instruments

    def get_instrument(self, symbol: str) -> Instrument:
        instrument = self.store.instruments.get(symbol)
        if instrument is None:
            raise NotFoundError(f"Instrument with symbol '{symbol}' not found")
        return instrument

    def get_price(self, symbol: str) -> Decimal:
        """Current price for symbol; raises NotFoundError if unknown."""
        return self.get_instrument(symbol).last_price

    def exists(self, symbol: str) -> bool:
        return isinstance(symbol, str) and symbol in self.store.instruments

    def set_price(self, symbol: str, price) -> Instrument:
        """
        Replace the stored price for symbol.

        Raises:
            NotFoundError: If symbol is unknown
            InvalidPriceError: If price is not a finite positive number
        """
        instrument = self.get_instrument(symbol)
        parsed = parse_price(price)
        if parsed is None or parsed <= 0:
            raise InvalidPriceError(f"Price must be a positive number, got {price!r}")
        instrument.last_price = parsed
        logger.info("Price updated: %s = %s", symbol, parsed)
        return instrument

    def search(
        self,
        exchange: Optional[str] = None,
        instrument_type: Optional[str] = None,
        query: Optional[str] = None,
        min_price=None,
        max_price=None,
    ) -> List[Instrument]:
        """Filter instruments; string criteria match case-insensitively."""
        instruments = self.list_instruments()

        if exchange:
            instruments = [i for i in instruments if i.exchange.value.lower() == exchange.lower()]
        if instrument_type:
            instruments = [
                i for i in instruments
                if i.instrument_type.value.lower() == instrument_type.lower()
            ]
        if query:
            q = query.lower()
            instruments = [
                i for i in instruments
                if q in i.symbol.lower() or q in i.company_name.lower()
            ]
        if min_price is not None:
            instruments = [i for i in instruments if i.last_price >= Decimal(str(min_price))]
        if max_price is not None:
            instruments = [i for i in instruments if i.last_price <= Decimal(str(max_price))]

        return instruments

    def supported_symbols(self) -> List[str]:
        """
        Get supported symbols.

        Returns:
            Sorted list of symbols
        """
        return sorted(self.store.instruments)

    def sectors(self) -> Dict[str, str]:
        """Symbol -> sector mapping for allocation analytics."""
        return {symbol: i.sector for symbol, i in self.store.instruments.items()}

    def get_market_stats(self) -> MarketStats:
        """Price range and listing venues over the stored prices, without jitter."""
        return market_stats(self.list_instruments(jitter=False))
