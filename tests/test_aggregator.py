import asyncio
import time

import httpx
import pytest

from bgsubs.aggregator import Aggregator, dedupe_records
from bgsubs.models import SubtitleRecord
from bgsubs.sources import SubsunacsSource


def record(provider, external_id, title="The Matrix"):
    return SubtitleRecord(provider=provider, provider_label=provider.title(), external_id=external_id, title=title)


class FakeSource:
    def __init__(self, name, payload, delay=0.0):
        self.name = name
        self.payload = payload
        self.delay = delay
        self.invocations = []

    async def search(self, client, title, year=None, season=None, episode=None, imdb_id=None):
        self.invocations.append((title, year, season, episode, imdb_id))
        await asyncio.sleep(self.delay)
        return list(self.payload)


class ExplodingSource(FakeSource):
    async def search(self, client, *args, **kwargs):
        raise RuntimeError("boom")


def test_search_all_runs_sources_concurrently(settings):
    fast = FakeSource("fast", [record("fast", "1")], delay=0.1)
    medium = FakeSource("medium", [record("medium", "2")], delay=0.3)
    slow = FakeSource("slow", [record("slow", "3")], delay=0.6)

    start = time.perf_counter()
    results = Aggregator([fast, medium, slow], settings=settings).search_all_sync("The Matrix", 1999)
    duration = time.perf_counter() - start

    assert [r.provider for r in results] == ["fast", "medium", "slow"]
    assert duration < 0.9  # close to the slowest source, not the sum


def test_merge_keeps_registration_order_not_completion_order(settings):
    slow_first = FakeSource("a", [record("a", "1"), record("a", "2")], delay=0.2)
    fast_second = FakeSource("b", [record("b", "1")], delay=0.0)
    results = Aggregator([slow_first, fast_second], settings=settings).search_all_sync("x")
    assert [r.key for r in results] == [("a", "1"), ("a", "2"), ("b", "1")]


def test_failing_source_does_not_hide_others(settings):
    good = FakeSource("good", [record("good", "7")])
    results = Aggregator([ExplodingSource("bad", []), good], settings=settings).search_all_sync("x")
    assert [r.key for r in results] == [("good", "7")]


def test_duplicates_dropped_first_seen_wins(settings):
    a = FakeSource("a", [record("a", "1", "first"), record("a", "1", "second"), record("a", "2")])
    b = FakeSource("b", [record("b", "1")])
    results = Aggregator([a, b], settings=settings).search_all_sync("x")
    assert [(r.key, r.title) for r in results] == [
        (("a", "1"), "first"),
        (("a", "2"), "The Matrix"),
        (("b", "1"), "The Matrix"),
    ]


def test_no_aggregate_cap(settings):
    a = FakeSource("a", [record("a", str(i)) for i in range(20)])
    b = FakeSource("b", [record("b", str(i)) for i in range(20)])
    assert len(Aggregator([a, b], settings=settings).search_all_sync("x")) == 40


def test_arguments_forwarded_to_every_source(settings):
    a, b = FakeSource("a", []), FakeSource("b", [])
    Aggregator({"a": a, "b": b}, settings=settings).search_all_sync("Breaking Bad", 2008, 1, 5, "tt0903747")
    assert a.invocations == b.invocations == [("Breaking Bad", 2008, 1, 5, "tt0903747")]


@pytest.mark.asyncio
async def test_no_sources_gives_empty_list(settings):
    assert await Aggregator([], settings=settings).search_all("x") == []


@pytest.mark.asyncio
async def test_real_sources_share_one_client(settings):
    def handler(request):
        return httpx.Response(500)

    clients = []

    def factory():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    aggregator = Aggregator([SubsunacsSource(settings=settings)], settings=settings, client_factory=factory)
    assert await aggregator.search_all("The Matrix") == []
    assert len(clients) == 1
    assert [s.name for s in aggregator.sources] == ["subsunacs"]


def test_dedupe_records_helper():
    rows = [record("a", "1"), record("a", "1"), record("b", "1")]
    assert [r.key for r in dedupe_records(rows)] == [("a", "1"), ("b", "1")]
