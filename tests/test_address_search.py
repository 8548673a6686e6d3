"""Tests for the debounced, latest-wins address search."""

import asyncio

from internship_map.core.interfaces import AddressCandidate, ProviderResult
from internship_map.core.models import Coordinates, InternshipAddress
from internship_map.geo.search import AddressSearchSession


def candidate(text):
    return AddressCandidate(
        display=text,
        address=InternshipAddress(street=text, city="Pittsburgh", full_address=text),
        coordinates=Coordinates(lat=40.44, lng=-79.99),
    )


class GatedChain:
    """Search chain that answers only once ``release`` is set."""

    def __init__(self, released=True, results=3):
        self.release = asyncio.Event()
        if released:
            self.release.set()
        self.results = results
        self.queries = []

    async def search(self, query, limit):
        self.queries.append(query)
        await self.release.wait()
        return ProviderResult.success(
            [candidate(f"{query} {i}") for i in range(self.results)], "gated"
        )


async def test_short_queries_return_nothing():
    chain = GatedChain()
    session = AddressSearchSession(chain, debounce_seconds=0)
    assert await session.search("ab") == []
    assert await session.search("   abc   ") is not None
    assert chain.queries == ["abc"]


async def test_results_are_capped_at_limit():
    session = AddressSearchSession(GatedChain(results=8), limit=5, debounce_seconds=0)
    results = await session.search("Forbes")
    assert len(results) == 5


async def test_superseded_request_is_discarded():
    chain = GatedChain(released=False)
    session = AddressSearchSession(chain, debounce_seconds=0)

    older = asyncio.create_task(session.search("Forbes"))
    newer = asyncio.create_task(session.search("Forbes Ave"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    chain.release.set()

    assert await older is None
    results = await newer
    assert [c.display for c in results][0] == "Forbes Ave 0"
    assert chain.queries == ["Forbes", "Forbes Ave"]


async def test_debounce_skips_provider_for_quick_typing():
    chain = GatedChain()
    session = AddressSearchSession(chain, debounce_seconds=0.05)

    first = asyncio.create_task(session.search("Forb"))
    await asyncio.sleep(0.01)
    second = asyncio.create_task(session.search("Forbes"))

    assert await first is None
    assert await second is not None
    assert chain.queries == ["Forbes"]


async def test_no_results_is_empty_list():
    session = AddressSearchSession(GatedChain(results=0), debounce_seconds=0)
    assert await session.search("Nowhere St") == []
