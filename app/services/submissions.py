"""Submission handling: validate, build the record, fan out, report."""
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict
import httpx
import structlog

from .dispatcher import FanOutDispatcher
from .mailer import SmtpMailer
from ..config import Settings
from ..errors import InternalFault, SubmissionValidationError
from ..metrics import Metrics
from ..records import SubmissionKind, SubmissionRecord, new_submission_id
from ..sinks import EmailSink, Sink, SinkResult, WebhookSink
from ..validation import normalize

log = structlog.get_logger()


class SubmissionOutcome(BaseModel):
    """An accepted submission and how its sinks settled."""

    model_config = ConfigDict(frozen=True)

    record: SubmissionRecord
    results: list[SinkResult]

    @property
    def email_attempted(self) -> bool:
        return any(result.sink == EmailSink.name for result in self.results)


class SubmissionService:
    """
    Handles contact and booking submissions.

    A validated submission is always accepted once its sinks settle,
    whatever they report. Only validation errors and faults while
    building the record reach the caller.
    """

    def __init__(
        self,
        sinks: Sequence[Sink],
        dispatcher: FanOutDispatcher | None = None,
        metrics: Metrics | None = None,
    ):
        self._sinks = list(sinks)
        self._dispatcher = dispatcher or FanOutDispatcher(metrics=metrics)
        self._metrics = metrics

    @property
    def sinks(self) -> list[Sink]:
        return list(self._sinks)

    async def submit(self, kind: SubmissionKind, raw: Any) -> SubmissionOutcome:
        """
        Process one submission.

        Raises:
            SubmissionValidationError: Rejected input; no sink was contacted.
            InternalFault: Unexpected failure before dispatch, carrying the minted id.
        """
        submission_id = None
        try:
            submission_id = new_submission_id(kind)
            structlog.contextvars.bind_contextvars(submission_id=submission_id)
            record = normalize(raw, kind, submission_id=submission_id)
        except SubmissionValidationError as e:
            log.info("submission.rejected", kind=kind.value, reason=e.reason.value, error=e.message)
            self._record(kind, "rejected")
            raise
        except Exception as e:
            log.error("submission.fault", kind=kind.value, submission_id=submission_id, exc_info=True)
            self._record(kind, "error")
            raise InternalFault(kind, submission_id, cause=e) from e

        results = await self._dispatcher.dispatch(record, self._sinks)
        outcome = SubmissionOutcome(record=record, results=results)

        log.info(
            "submission.accepted",
            kind=kind.value,
            submission_id=record.id,
            sinks_ok=sum(1 for r in results if r.ok),
            sinks_total=len(results),
            email_attempted=outcome.email_attempted,
        )
        self._record(kind, "accepted")
        return outcome

    async def submit_contact(self, raw: Any) -> SubmissionOutcome:
        return await self.submit(SubmissionKind.CONTACT, raw)

    async def submit_booking(self, raw: Any) -> SubmissionOutcome:
        return await self.submit(SubmissionKind.BOOKING, raw)

    def _record(self, kind: SubmissionKind, status: str) -> None:
        if self._metrics is not None:
            self._metrics.record_submission(kind.value, status)


def build_mailer(settings: Settings) -> SmtpMailer | None:
    """Create the SMTP transport, or None when credentials are missing."""
    if not settings.email_configured:
        log.warning("email.disabled", reason="EMAIL_USER or EMAIL_PASS not configured")
        return None
    return SmtpMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.EMAIL_USER,
        password=settings.EMAIL_PASS,
        use_tls=settings.SMTP_SECURE,
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )


def build_default_sinks(
    settings: Settings,
    http_client: httpx.AsyncClient,
    mailer: SmtpMailer | None,
) -> list[Sink]:
    """
    Assemble sinks from configuration, webhook first.

    Returns:
        The webhook sink when WEBHOOK_URL is set, plus the email sink
        when a mailer is available.
    """
    sinks: list[Sink] = []

    if settings.WEBHOOK_URL:
        sinks.append(
            WebhookSink(
                url=str(settings.WEBHOOK_URL),
                client=http_client,
                source=settings.SUBMISSION_SOURCE,
                timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
            )
        )
        log.info("sink.selected", type="webhook", url=str(settings.WEBHOOK_URL))
    else:
        log.warning("sink.disabled", type="webhook", reason="WEBHOOK_URL not configured")

    if mailer is not None:
        sinks.append(
            EmailSink(
                mailer=mailer,
                sender=settings.EMAIL_USER,
                recipient=settings.operator_mailbox,
                sender_name=settings.EMAIL_SENDER_NAME,
            )
        )
        log.info("sink.selected", type="email", recipient=settings.operator_mailbox)

    return sinks
