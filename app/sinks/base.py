"""Base sink interface for submission notification channels."""
from abc import ABC, abstractmethod
import asyncio
import time

from pydantic import BaseModel, ConfigDict
import structlog

from ..errors import SinkFailure
from ..records import SubmissionRecord

log = structlog.get_logger()


class SinkResult(BaseModel):
    """Settled outcome of one sink delivery attempt."""

    model_config = ConfigDict(frozen=True)

    sink: str
    ok: bool
    detail: str = ""
    error: SinkFailure | None = None
    elapsed_ms: float = 0.0

    @classmethod
    def success(cls, sink: str, detail: str = "") -> "SinkResult":
        return cls(sink=sink, ok=True, detail=detail)

    @classmethod
    def failure(cls, sink: str, error: SinkFailure, detail: str) -> "SinkResult":
        return cls(sink=sink, ok=False, error=error, detail=detail)


class Sink(ABC):
    """
    A channel that receives normalized submission records.

    Subclasses implement ``_deliver``; callers only ever use ``send``,
    which settles every attempt into a ``SinkResult`` and never raises.
    """

    name: str = "sink"

    async def send(self, record: SubmissionRecord) -> SinkResult:
        """
        Deliver a record and report the outcome.

        Args:
            record: The normalized submission.

        Returns:
            The settled result, with failures converted rather than raised.
        """
        start = time.perf_counter()
        try:
            result = await self._deliver(record)
        except Exception as e:
            error = self._classify(e)
            log.debug("sink.exception", sink=self.name, error=str(e), error_type=type(e).__name__)
            result = SinkResult.failure(self.name, error, f"{type(e).__name__}: {e}")
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        return result.model_copy(update={"elapsed_ms": elapsed_ms})

    @abstractmethod
    async def _deliver(self, record: SubmissionRecord) -> SinkResult:
        """Perform the I/O. May raise; ``send`` converts exceptions."""

    def _classify(self, exc: Exception) -> SinkFailure:
        """Map an exception raised by ``_deliver`` to a failure kind."""
        if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
            return SinkFailure.TIMEOUT
        return SinkFailure.TRANSPORT_FAILURE
