"""Operator email notification sink."""
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

import structlog

from .base import Sink, SinkResult
from ._formatting import format_body_html, format_body_text, format_subject
from ..errors import SinkFailure
from ..records import SubmissionRecord
from ..services.mailer import SmtpMailer

log = structlog.get_logger()


class EmailSink(Sink):
    """Emails each submission to the operator mailbox.

    Reply-To is the submitter, so answering the notification goes straight
    back to them. Only built when an SMTP transport is configured.
    """

    name = "email"

    def __init__(
        self,
        mailer: SmtpMailer,
        sender: str,
        recipient: str,
        sender_name: str = "BESTIE",
    ):
        self._mailer = mailer
        self.sender = sender
        self.recipient = recipient
        self.sender_name = sender_name

    def build_message(self, record: SubmissionRecord) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = format_subject(record)
        message["From"] = formataddr((self.sender_name, self.sender))
        message["To"] = self.recipient
        message["Reply-To"] = record.email
        message["Message-ID"] = make_msgid(idstring=record.id, domain=self.sender.rpartition("@")[2] or None)
        message["X-Submission-Id"] = record.id
        message.set_content(format_body_text(record))
        message.add_alternative(format_body_html(record), subtype="html")
        return message

    async def _deliver(self, record: SubmissionRecord) -> SinkResult:
        message = self.build_message(record)
        refused = await self._mailer.send(message)
        if refused:
            return SinkResult.failure(
                self.name,
                SinkFailure.TRANSPORT_FAILURE,
                f"recipients refused: {', '.join(sorted(refused))}",
            )
        log.debug("email.sent", recipient=self.recipient, subject=message["Subject"])
        return SinkResult.success(self.name, f"sent to {self.recipient}")
