"""FanOutDispatcher: delivers one record to every configured sink at once."""
from typing import Sequence
import asyncio

import structlog

from ..errors import SinkFailure
from ..metrics import Metrics
from ..records import SubmissionRecord
from ..sinks.base import Sink, SinkResult

log = structlog.get_logger()


class FanOutDispatcher:
    """
    Runs all sink deliveries concurrently and waits for every one to settle.

    A failing sink never short-circuits the others and never fails the
    dispatch: it only contributes a failed ``SinkResult``. Results come
    back in sink order, not completion order.

    By default no deadline is imposed beyond each sink's own timeout.
    With ``deadline`` set, every sink is bounded individually and an
    overrunning sink settles as a timeout.
    """

    def __init__(self, metrics: Metrics | None = None, deadline: float | None = None):
        self._metrics = metrics
        self.deadline = deadline

    async def dispatch(self, record: SubmissionRecord, sinks: Sequence[Sink]) -> list[SinkResult]:
        if not sinks:
            log.warning("dispatch.no_sinks", submission_id=record.id, kind=record.kind.value)
            return []

        outcomes = await asyncio.gather(
            *(self._bounded(sink, record) for sink in sinks),
            return_exceptions=True,
        )

        results: list[SinkResult] = []
        for sink, outcome in zip(sinks, outcomes):
            if isinstance(outcome, SinkResult):
                result = outcome
            else:
                # Sink broke its contract and raised out of send()
                result = SinkResult.failure(
                    _sink_name(sink),
                    SinkFailure.TRANSPORT_FAILURE,
                    f"{type(outcome).__name__}: {outcome}",
                )
            self._observe(record, result)
            results.append(result)

        return results

    async def _bounded(self, sink: Sink, record: SubmissionRecord) -> SinkResult:
        if self.deadline is None:
            return await sink.send(record)
        try:
            return await asyncio.wait_for(sink.send(record), timeout=self.deadline)
        except asyncio.TimeoutError:
            return SinkResult.failure(
                _sink_name(sink),
                SinkFailure.TIMEOUT,
                f"no result within {self.deadline}s dispatch deadline",
            ).model_copy(update={"elapsed_ms": self.deadline * 1000})

    def _observe(self, record: SubmissionRecord, result: SinkResult) -> None:
        if result.ok:
            log.info(
                "sink.delivered",
                sink=result.sink,
                submission_id=record.id,
                detail=result.detail,
                elapsed_ms=result.elapsed_ms,
            )
        else:
            log.warning(
                "sink.failed",
                sink=result.sink,
                submission_id=record.id,
                error=result.error.value if result.error else None,
                detail=result.detail,
                elapsed_ms=result.elapsed_ms,
            )
        if self._metrics is not None:
            self._metrics.record_sink_result(result.sink, result.ok, result.elapsed_ms)


def _sink_name(sink: object) -> str:
    return getattr(sink, "name", type(sink).__name__)
