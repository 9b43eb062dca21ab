"""SMTP transport shared by all email notifications."""
from email.message import EmailMessage
import asyncio
import smtplib
import ssl

import structlog

log = structlog.get_logger()


class SmtpMailer:
    """
    Process-wide SMTP transport.

    Holds immutable connection settings only. Each send opens its own
    connection in a worker thread, so concurrent requests share no
    mutable state.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_tls: bool = False,
        timeout: float = 10.0,
    ):
        """
        Initialize SMTP transport settings.

        Args:
            host: SMTP server host.
            port: SMTP server port.
            username: Login user, also the default sender address.
            password: Login password.
            use_tls: Implicit TLS (SMTPS) when True, otherwise STARTTLS when offered.
            timeout: Socket timeout in seconds for connect and each command.
        """
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.use_tls:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=context
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=context)
                server.ehlo()
        server.login(self.username, self._password)
        return server

    def _send_sync(self, message: EmailMessage) -> dict:
        with self._connect() as server:
            return server.send_message(message)

    async def send(self, message: EmailMessage) -> dict:
        """
        Send a message.

        Returns:
            Recipients the server refused, keyed by address. Empty on full success.

        Raises:
            smtplib.SMTPException, OSError: On transport failure.
        """
        return await asyncio.to_thread(self._send_sync, message)

    def _verify_sync(self) -> None:
        with self._connect() as server:
            server.noop()

    async def verify(self) -> bool:
        """Check that the server accepts our credentials. Never raises."""
        try:
            await asyncio.to_thread(self._verify_sync)
        except (smtplib.SMTPException, OSError) as e:
            log.error("mailer.verify_failed", host=self.host, port=self.port, error=str(e))
            return False
        log.info("mailer.ready", host=self.host, port=self.port)
        return True
