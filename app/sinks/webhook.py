"""Spreadsheet webhook sink."""
import httpx
import orjson
import structlog

from .base import Sink, SinkResult
from ..errors import SinkFailure
from ..records import SubmissionRecord

log = structlog.get_logger()

RESPONSE_EXCERPT_CHARS = 200


class WebhookSink(Sink):
    """POSTs each record as JSON to an external storage webhook.

    The endpoint (a spreadsheet script) typically answers with a redirect,
    so redirects are followed. ``ok`` reflects the final HTTP status.
    """

    name = "webhook"

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient,
        source: str = "bestie.co.ke",
        timeout: float = 10.0,
    ):
        """
        Initialize the webhook sink.

        Args:
            url: Endpoint receiving the JSON payload.
            client: Shared async HTTP client, owned by the caller.
            source: Constant ``source`` tag stamped on every payload.
            timeout: Per-request bound in seconds.
        """
        self.url = str(url)
        self.source = source
        self.timeout = timeout
        self._client = client

    async def _deliver(self, record: SubmissionRecord) -> SinkResult:
        body = orjson.dumps(record.to_payload(self.source))
        response = await self._client.post(
            self.url,
            content=body,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
            follow_redirects=True,
        )

        if response.is_success:
            return SinkResult.success(self.name, f"HTTP {response.status_code}")

        excerpt = response.text[:RESPONSE_EXCERPT_CHARS]
        log.debug("webhook.non_success", status=response.status_code, body=excerpt)
        return SinkResult.failure(
            self.name,
            SinkFailure.NON_SUCCESS_STATUS,
            f"HTTP {response.status_code}: {excerpt}",
        )

    def _classify(self, exc: Exception) -> SinkFailure:
        if isinstance(exc, httpx.TimeoutException):
            return SinkFailure.TIMEOUT
        return super()._classify(exc)
