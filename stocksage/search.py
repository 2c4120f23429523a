"""Symbol autocomplete where the most recent query wins."""

import asyncio
import logging
from typing import Optional

from stocksage.models import SymbolMatch
from stocksage.providers.yahoo import YahooProvider


logger = logging.getLogger(__name__)


class SymbolSearch:
    """Runs autocomplete lookups, cancelling any lookup still in flight.

    Each new ``search`` call supersedes the previous one. A superseded call
    returns ``None`` instead of its (stale) suggestions.
    """

    def __init__(self, provider: YahooProvider, limit: int = 6):
        self.provider = provider
        self.limit = limit
        self._current: Optional[asyncio.Task] = None
        self._generation = 0

    def cancel(self) -> None:
        """Cancel the lookup in flight, if any."""
        self._generation += 1
        if self._current is not None and not self._current.done():
            self._current.cancel()
        self._current = None

    async def search(self, query: str) -> Optional[list[SymbolMatch]]:
        """Look up symbols matching a partial ticker or company name.

        Args:
            query: Text typed so far.

        Returns:
            Matching symbols, ``[]`` for a blank query, or ``None`` if a
            newer search superseded this one.

        Raises:
            MarketDataError: If the lookup itself failed.
        """
        self.cancel()
        query = query.strip()
        if not query:
            return []

        generation = self._generation
        task = asyncio.ensure_future(self.provider.search_symbols(query, self.limit))
        self._current = task
        try:
            return await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("Search for %r superseded", query)
                return None
            raise
        finally:
            if self._current is task:
                self._current = None
