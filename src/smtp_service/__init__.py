"""Single-connection SMTP client with transparent reconnection.

This package keeps one cached connection to a mail relay and lets many
asyncio tasks send through it:

- Explicit connect/disconnect lifecycle, no process-wide singleton
- Shared read access for senders, exclusive access for reconnects
- Transparent reconnect, at most once, when the connection went stale
- HTML mail builder over the standard ``email`` package
- aiosmtplib transport with STARTTLS or implicit TLS
- Prometheus metrics for connects, reconnects and sends

Example:
    Basic usage::

        from smtp_service import SMTPService

        async with SMTPService() as service:
            await service.connect("smtp.example.com", 587, "user", "secret", require_tls=True)
            mail = await service.create_mail()
            mail.set_sender("noreply@example.com", "Example")
            mail.set_html_content("<p>Hello</p>")
            mail.add_recipient("a@b.com")
            await service.send_mail(mail)
"""

from .exceptions import (
    DisconnectError,
    InvalidAddressError,
    NotConnectedError,
    SendError,
    SMTPConnectionError,
    SMTPServiceError,
)
from .mail import Mail, MailSession
from .models import ConnectionParameters, TLSMode
from .service import ConnectionHandle, SMTPService
from .transport import AioSMTPTransport, Transport

__all__ = [
    "AioSMTPTransport",
    "ConnectionHandle",
    "ConnectionParameters",
    "DisconnectError",
    "InvalidAddressError",
    "Mail",
    "MailSession",
    "NotConnectedError",
    "SMTPConnectionError",
    "SMTPService",
    "SMTPServiceError",
    "SendError",
    "TLSMode",
    "Transport",
]
