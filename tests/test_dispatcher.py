"""Tests for concurrent fan-out dispatch."""
import asyncio

import pytest
from prometheus_client import CollectorRegistry

from app.errors import SinkFailure
from app.metrics import Metrics
from app.records import SubmissionKind
from app.services.dispatcher import FanOutDispatcher
from app.validation import normalize
from fakes import ContractBreakingSink, ExplodingSink, RecordingSink


@pytest.fixture
def record():
    return normalize(
        {"name": "Ann", "email": "ann@x.com", "subject": "Hi", "message": "Hello"},
        SubmissionKind.CONTACT,
    )


@pytest.mark.asyncio
async def test_dispatch_delivers_to_every_sink(record):
    first, second = RecordingSink("first"), RecordingSink("second")

    results = await FanOutDispatcher().dispatch(record, [first, second])

    assert [r.sink for r in results] == ["first", "second"]
    assert all(r.ok for r in results)
    assert first.records == [record]
    assert second.records == [record]


@pytest.mark.asyncio
async def test_dispatch_runs_sinks_concurrently(record):
    sinks = [RecordingSink(f"slow{i}", delay=0.2) for i in range(3)]
    loop = asyncio.get_running_loop()

    start = loop.time()
    await FanOutDispatcher().dispatch(record, sinks)
    elapsed = loop.time() - start

    # Sequential delivery would take ~0.6s
    assert elapsed < 0.5


@pytest.mark.asyncio
async def test_dispatch_waits_for_slowest_sink(record):
    fast = RecordingSink("fast")
    slow = RecordingSink("slow", delay=0.15)

    results = await FanOutDispatcher().dispatch(record, [slow, fast])

    assert slow.settled and fast.settled
    assert [r.sink for r in results] == ["slow", "fast"]


@pytest.mark.asyncio
async def test_failing_sink_does_not_block_others(record):
    failing = ExplodingSink("webhook", exc=ConnectionError("refused"))
    healthy = RecordingSink("email")

    results = await FanOutDispatcher().dispatch(record, [failing, healthy])

    assert results[0].ok is False
    assert results[0].error is SinkFailure.TRANSPORT_FAILURE
    assert "refused" in results[0].detail
    assert results[1].ok is True
    assert healthy.records == [record]


@pytest.mark.asyncio
async def test_contract_breaking_sink_is_contained(record):
    healthy = RecordingSink("healthy")

    results = await FanOutDispatcher().dispatch(record, [ContractBreakingSink(), healthy])

    assert results[0].sink == "rogue"
    assert results[0].ok is False
    assert "rogue sink" in results[0].detail
    assert results[1].ok is True


@pytest.mark.asyncio
async def test_no_sinks_returns_empty(record):
    assert await FanOutDispatcher().dispatch(record, []) == []


@pytest.mark.asyncio
async def test_without_deadline_slow_sink_still_succeeds(record):
    slow = RecordingSink("slow", delay=0.1)

    results = await FanOutDispatcher(deadline=None).dispatch(record, [slow])

    assert results[0].ok is True


@pytest.mark.asyncio
async def test_deadline_settles_overrunning_sink_as_timeout(record):
    hung = RecordingSink("hung", delay=5)
    quick = RecordingSink("quick")

    results = await FanOutDispatcher(deadline=0.05).dispatch(record, [hung, quick])

    assert results[0].ok is False
    assert results[0].error is SinkFailure.TIMEOUT
    assert hung.records == []
    assert results[1].ok is True


@pytest.mark.asyncio
async def test_dispatch_records_sink_metrics(record):
    metrics = Metrics(registry=CollectorRegistry())
    dispatcher = FanOutDispatcher(metrics=metrics)

    await dispatcher.dispatch(record, [RecordingSink("webhook"), RecordingSink("email", ok=False)])

    registry = metrics.registry
    assert registry.get_sample_value(
        "bestie_sink_deliveries_total", {"sink": "webhook", "result": "ok"}
    ) == 1.0
    assert registry.get_sample_value(
        "bestie_sink_deliveries_total", {"sink": "email", "result": "failed"}
    ) == 1.0
    assert registry.get_sample_value("bestie_sink_duration_seconds_count", {"sink": "webhook"}) == 1.0
