# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP transport built on aiosmtplib.

A transport is one live connection to a relay. It knows how to push a
message to a list of recipients and how to close itself; it knows nothing
about locking or reconnection, which belong to ``SMTPService``.

``Transport`` and ``TransportFactory`` describe what the service needs, so
tests and embedding applications can inject their own implementation.
``AioSMTPTransport`` is the default one.

TLS behavior, from ``ConnectionParameters.tls_mode``:
    - Port 465 with require_tls: direct TLS (implicit TLS)
    - Any other port with require_tls: STARTTLS
    - require_tls off: plain SMTP
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from email.message import EmailMessage
from typing import Protocol

import aiosmtplib

from .logger import get_logger
from .models import ConnectionParameters, TLSMode

logger = get_logger("SMTPTransport")

# Extra time granted to the whole open sequence on top of the configured
# timeout, which aiosmtplib applies per network operation.
OPEN_GRACE_SECONDS = 5.0


class Transport(Protocol):
    """A live connection able to transmit messages to a relay."""

    def is_connected(self) -> bool: ...

    async def send(self, message: EmailMessage, recipients: Sequence[str]) -> None: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[ConnectionParameters], Awaitable[Transport]]


class AioSMTPTransport:
    """Transport over a single ``aiosmtplib.SMTP`` client.

    Attributes:
        smtp: The connected aiosmtplib client.
        params: Parameters the client was opened with.
    """

    def __init__(self, smtp: aiosmtplib.SMTP, params: ConnectionParameters):
        self.smtp = smtp
        self.params = params

    @classmethod
    async def open(cls, params: ConnectionParameters) -> AioSMTPTransport:
        """Connect, negotiate TLS and authenticate.

        Args:
            params: Relay host, port, credentials, TLS requirement and timeout.

        Returns:
            A connected transport.

        Raises:
            asyncio.TimeoutError: If the open sequence exceeds its time bound.
            aiosmtplib.SMTPException: If connection, TLS or login fails.
            OSError: On network-level failures.
        """
        mode = params.tls_mode
        smtp = aiosmtplib.SMTP(
            hostname=params.host,
            port=params.port,
            use_tls=mode is TLSMode.IMPLICIT,
            start_tls=mode is TLSMode.STARTTLS,
            timeout=params.timeout_seconds,
        )

        async def _do_connect():
            await smtp.connect()
            if params.uses_auth:
                await smtp.login(params.username, params.password)

        try:
            await asyncio.wait_for(_do_connect(), timeout=params.timeout_seconds + OPEN_GRACE_SECONDS)
        except BaseException:
            if smtp.is_connected:
                smtp.close()
            raise
        logger.debug("Opened %s transport to %s:%s", mode.value, params.host, params.port)
        return cls(smtp, params)

    def is_connected(self) -> bool:
        return self.smtp.is_connected

    async def send(self, message: EmailMessage, recipients: Sequence[str]) -> None:
        """Transmit ``message`` to ``recipients``.

        Each network read is bounded by the client timeout.

        Raises:
            aiosmtplib.SMTPException: If the relay rejects the message or
                every recipient, or the connection drops mid-send.
        """
        await self.smtp.send_message(message, recipients=list(recipients))

    async def close(self) -> None:
        """Say QUIT, falling back to dropping the socket if that fails."""
        if not self.smtp.is_connected:
            return
        try:
            await self.smtp.quit()
        except Exception:
            self.smtp.close()
            raise
