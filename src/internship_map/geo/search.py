"""Address autocomplete with debounce and latest-wins semantics."""

from __future__ import annotations

import asyncio

from loguru import logger

from ..core.interfaces import AddressCandidate
from .providers import ProviderChain


class AddressSearchSession:
    """
    One search box.

    Every call to :meth:`search` supersedes the previous one. A call that
    has been superseded, either while waiting out the debounce delay or
    while the providers were answering, returns None so callers can drop
    the stale results.
    """

    def __init__(
        self,
        chain: ProviderChain,
        min_chars: int = 3,
        limit: int = 5,
        debounce_seconds: float = 0.3,
    ):
        self.chain = chain
        self.min_chars = min_chars
        self.limit = limit
        self.debounce_seconds = debounce_seconds
        self._generation = 0

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def search(self, query: str) -> list[AddressCandidate] | None:
        self._generation += 1
        generation = self._generation

        query = query.strip()
        if len(query) < self.min_chars:
            return []

        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
        if not self._is_current(generation):
            logger.debug(f"Address search superseded during debounce: {query!r}")
            return None

        result = await self.chain.search(query, self.limit)
        if not self._is_current(generation):
            logger.debug(f"Discarding stale address results for {query!r}")
            return None

        return list(result.data or [])[: self.limit]
