# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP connection manager.

``SMTPService`` owns at most one relay connection (a session plus the
transport bound to it) and the parameters it was opened with. Senders
borrow the connection under a shared lock; connect, disconnect and
reconnect take the lock exclusively.

Connection states:
    - Absent: never connected, disconnected, or the last connect failed.
    - Connected: the transport reports itself live.
    - Stale: the transport exists but reports not connected (idle timeout,
      dropped socket). Stale is never handed out: the first task that
      notices it reconnects with the last parameters while every other
      task waits for that reconnect and reuses its result.

``connect`` always replaces the cached connection, even when the host is
unchanged. ``send_mail`` never connects on its own: without a prior
successful ``connect`` it raises ``NotConnectedError``. A failed reconnect
leaves the service Absent, and until the next ``connect`` or
``disconnect`` every borrower gets an ``SMTPConnectionError`` with the
message of that failure.

Example:
    Lifecycle of a service::

        async with SMTPService() as service:
            await service.connect("smtp.example.com", 587, "user", "secret")
            mail = await service.create_mail()
            mail.set_sender("noreply@example.com", "Example")
            mail.set_html_content("<p>Hello</p>")
            mail.add_recipient("user@example.com")
            await service.send_mail(mail)
"""

from __future__ import annotations

import codecs
import locale
import logging
from dataclasses import dataclass
from datetime import timedelta

from .exceptions import DisconnectError, NotConnectedError, SendError, SMTPConnectionError
from .logger import get_logger
from .mail import Mail, MailSession
from .models import DEFAULT_TIMEOUT, ConnectionParameters
from .prometheus import ConnectionMetrics
from .rwlock import ReadWriteLock
from .transport import AioSMTPTransport, Transport, TransportFactory

UNICODE_ENCODINGS = ("utf-8", "utf-16")


@dataclass(frozen=True)
class ConnectionHandle:
    """An established relay connection.

    Attributes:
        session: Context mails are built against.
        transport: Live transport bound to the session.
    """

    session: MailSession
    transport: Transport


def process_encoding() -> str:
    """Normalized name of the process's preferred text encoding."""
    encoding = locale.getpreferredencoding(False)
    try:
        return codecs.lookup(encoding).name
    except LookupError:
        return encoding.lower()


class SMTPService:
    """Concurrency-safe facade over a single SMTP relay connection.

    Attributes:
        metrics: Prometheus metrics for the connection lifecycle.
        logger: Logger used for lifecycle events.
    """

    def __init__(
        self,
        transport_factory: TransportFactory | None = None,
        *,
        metrics: ConnectionMetrics | None = None,
        logger: logging.Logger | None = None,
    ):
        """Create a disconnected service.

        Args:
            transport_factory: Coroutine function opening a transport for
                given parameters. Defaults to ``AioSMTPTransport.open``.
            metrics: Metrics collector. A private one is created if omitted.
            logger: Custom logger instance. If None, uses default logger.
        """
        self._open_transport = transport_factory or AioSMTPTransport.open
        self.metrics = metrics or ConnectionMetrics()
        self.logger = logger or get_logger("SMTPService")
        self._lock = ReadWriteLock()
        self._params: ConnectionParameters | None = None
        self._handle: ConnectionHandle | None = None
        # Set when a transparent reconnect fails; cleared by connect and disconnect.
        self._reconnect_failure: SMTPConnectionError | None = None

    async def __aenter__(self) -> SMTPService:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    @property
    def parameters(self) -> ConnectionParameters | None:
        """Parameters of the cached connection, or None when Absent."""
        return self._params

    @property
    def is_connected(self) -> bool:
        handle = self._handle
        return handle is not None and handle.transport.is_connected()

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    async def connect(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        require_tls: bool = True,
        timeout: timedelta | float = DEFAULT_TIMEOUT,
    ) -> bool:
        """Connect to ``host:port``, replacing any cached connection.

        Args:
            host: SMTP relay hostname.
            port: SMTP relay port.
            username: Login user name; empty skips authentication.
            password: Login password.
            require_tls: Whether the connection must be encrypted.
            timeout: Connect and read timeout, as ``timedelta`` or seconds.

        Returns:
            True once connected.

        Raises:
            pydantic.ValidationError: If the parameters are invalid.
            SMTPConnectionError: If the relay cannot be reached, refuses the
                credentials or TLS negotiation fails. The service is left
                disconnected.
        """
        params = ConnectionParameters(
            host=host,
            port=port,
            username=username,
            password=password,
            require_tls=require_tls,
            timeout=timeout,
        )
        return await self.connect_with(params)

    async def connect_with(self, params: ConnectionParameters) -> bool:
        """Connect with prepared parameters. See ``connect``."""
        async with self._lock.write():
            self._reconnect_failure = None
            await self._open_locked(params)
        return True

    async def disconnect(self) -> None:
        """Close the cached connection, if any.

        Local state is cleared before the transport is closed, so the
        service is disconnected even when closing fails.

        Raises:
            DisconnectError: If the transport failed to close cleanly.
        """
        async with self._lock.write():
            self._reconnect_failure = None
            if self._handle is None:
                self._params = None
                return
            host = self._handle.session.host
            await self._teardown_locked()
            self.logger.info("Disconnected from %s", host)

    async def _open_locked(self, params: ConnectionParameters) -> None:
        """Replace the cached connection with a new one. Caller holds the write lock."""
        if self._handle is not None:
            try:
                await self._teardown_locked()
            except DisconnectError:
                pass  # logged by _teardown_locked
        self._params = None

        encoding = process_encoding()
        if encoding not in UNICODE_ENCODINGS:
            self.logger.warning(
                "Process encoding is %s, not UTF-8 nor UTF-16. Mail contents may not be encoded correctly.",
                encoding,
            )

        try:
            transport = await self._open_transport(params)
        except Exception as exc:
            self.metrics.inc_connect_error(params.host)
            self.logger.error("Connection to %s:%s failed: %s", params.host, params.port, exc)
            raise SMTPConnectionError(
                f"Unable to connect to {params.host}:{params.port}: {exc}"
            ) from exc

        self._params = params
        self._handle = ConnectionHandle(
            session=MailSession(host=params.host, port=params.port),
            transport=transport,
        )
        self.metrics.inc_connect(params.host)
        self.metrics.set_connected(True)
        self.logger.info(
            "Connected to %s:%s (tls=%s)", params.host, params.port, params.tls_mode.value
        )

    async def _teardown_locked(self) -> None:
        """Drop the cached connection and close its transport. Caller holds the write lock."""
        handle = self._handle
        self._handle = None
        self._params = None
        self.metrics.set_connected(False)
        if handle is None:
            return
        try:
            await handle.transport.close()
        except Exception as exc:
            self.logger.warning("Error closing connection to %s: %s", handle.session.host, exc)
            raise DisconnectError(
                f"Failed to close connection to {handle.session.host}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    async def _acquire_live_handle(self) -> ConnectionHandle:
        """Return a live handle with the read lock held.

        The caller must release the read lock. A stale handle is upgraded:
        release read, take write, check again, reconnect only if still
        needed, then downgrade back to read.

        Raises:
            NotConnectedError: If no connection is cached.
            SMTPConnectionError: If the reconnect failed, here or in the
                task that reconnected while this one waited.
        """
        await self._lock.acquire_read()
        try:
            handle = self._handle
            if handle is not None and handle.transport.is_connected():
                return handle
        except BaseException:
            await self._lock.release_read()
            raise
        await self._lock.release_read()
        if handle is None:
            self._raise_absent()

        await self._lock.acquire_write()
        try:
            handle = await self._check_connection_locked()
        except BaseException:
            await self._lock.release_write()
            raise
        try:
            await self._lock.downgrade()
        except BaseException:
            # The downgrade itself is done before its first await.
            await self._lock.release_read()
            raise
        return handle

    async def _check_connection_locked(self) -> ConnectionHandle:
        # State may have changed while the write lock was pending.
        handle = self._handle
        if handle is not None and handle.transport.is_connected():
            return handle
        if handle is None or self._params is None:
            self._raise_absent()

        params = self._params
        self.logger.warning("Connection to %s:%s is stale, reconnecting", params.host, params.port)
        self.metrics.inc_reconnect(params.host)
        try:
            await self._open_locked(params)
        except SMTPConnectionError as exc:
            self._reconnect_failure = exc
            raise
        return self._handle

    def _raise_absent(self) -> None:
        failure = self._reconnect_failure
        if failure is not None:
            raise SMTPConnectionError(str(failure)) from failure
        raise NotConnectedError()

    async def get_session(self) -> MailSession:
        """Session of a live connection, reconnecting first if it went stale.

        Raises:
            NotConnectedError: If no connection is cached.
            SMTPConnectionError: If the reconnect failed.
        """
        handle = await self._acquire_live_handle()
        await self._lock.release_read()
        return handle.session

    async def get_transport(self) -> Transport:
        """Transport of a live connection, reconnecting first if it went stale."""
        handle = await self._acquire_live_handle()
        await self._lock.release_read()
        return handle.transport

    async def create_mail(self) -> Mail:
        """Build an empty mail against the current session."""
        return Mail(await self.get_session())

    async def send_mail(self, mail: Mail | None) -> None:
        """Send ``mail`` to its To recipients over the cached connection.

        ``None`` or a mail without recipients is ignored. A failed send is
        not retried and leaves the connection as it is.

        Raises:
            NotConnectedError: If no connection is cached.
            SMTPConnectionError: If the connection was stale and the
                reconnect failed.
            SendError: If the relay did not accept the mail.
        """
        if mail is None or not mail.recipients:
            self.logger.debug("send_mail called without recipients, nothing to send")
            return

        recipients = mail.recipients
        handle = await self._acquire_live_handle()
        try:
            host = handle.session.host
            try:
                # aiosmtplib serializes concurrent sends on one client.
                await handle.transport.send(mail.message, recipients)
            except Exception as exc:
                self.metrics.inc_send_error(host)
                self.logger.error(
                    "Failed to send mail to %s via %s: %s", ", ".join(recipients), host, exc
                )
                raise SendError(
                    f"Failed to send mail to {', '.join(recipients)}: {exc}"
                ) from exc
            self.metrics.inc_sent(host)
            self.logger.debug("Sent mail to %s via %s", ", ".join(recipients), host)
        finally:
            await self._lock.release_read()
