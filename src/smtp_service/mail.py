# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Outbound mail built against a live SMTP session.

``Mail`` wraps an ``email.message.EmailMessage`` instead of extending it.
A mail is always built from a ``MailSession``, which ``SMTPService`` only
hands out while connected, so a mail cannot exist before the first
connect.

Example:
    Building and sending an HTML mail::

        mail = await service.create_mail()
        mail.set_sender("noreply@example.com", "Example")
        mail.set_subject("Welcome")
        mail.set_html_content("<p>Hello</p>")
        mail.add_recipient("user@example.com")
        await service.send_mail(mail)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from email import policy as email_policy
from email.errors import HeaderParseError
from email.headerregistry import Address
from email.message import EmailMessage
from email.policy import Policy

from .exceptions import InvalidAddressError

DEFAULT_CHARSET = "utf-8"


@dataclass(frozen=True)
class MailSession:
    """Context shared by every mail built on one relay connection.

    Attributes:
        host: Relay the session belongs to.
        port: Relay port.
        policy: ``email`` policy used to build and serialize messages.
        charset: Charset for text bodies.
        created_at: Epoch timestamp of the connect that created the session.
    """

    host: str
    port: int
    policy: Policy = email_policy.SMTP
    charset: str = DEFAULT_CHARSET
    created_at: float = field(default_factory=time.time)


def _parse_address(address: str, display_name: str = "") -> Address:
    try:
        parsed = Address(display_name=display_name or "", addr_spec=address.strip())
    except (ValueError, HeaderParseError, IndexError) as exc:
        raise InvalidAddressError(f"Invalid email address: {address!r}") from exc
    if not parsed.username or not parsed.domain:
        raise InvalidAddressError(f"Invalid email address: {address!r}")
    return parsed


class Mail:
    """An outbound message with a To-only recipient list.

    Attributes:
        session: The session this mail was built against.
        message: The underlying ``EmailMessage``.
    """

    def __init__(self, session: MailSession):
        self.session = session
        self.message = EmailMessage(policy=session.policy)
        self._recipients: list[Address] = []

    def set_sender(self, address: str, name: str = "") -> None:
        """Set the From header.

        Args:
            address: Sender address.
            name: Display name shown as the sender.

        Raises:
            InvalidAddressError: If ``address`` cannot be parsed.
        """
        sender = _parse_address(address, name)
        del self.message["From"]
        self.message["From"] = sender

    def set_subject(self, subject: str) -> None:
        del self.message["Subject"]
        self.message["Subject"] = subject

    def set_html_content(self, content: str) -> None:
        """Set ``content`` as the HTML body, quoted-printable encoded."""
        self.message.set_content(
            content, subtype="html", charset=self.session.charset, cte="quoted-printable"
        )

    def set_text_content(self, content: str) -> None:
        self.message.set_content(
            content, subtype="plain", charset=self.session.charset, cte="quoted-printable"
        )

    def add_recipient(self, address: str) -> None:
        """Add a To recipient.

        Raises:
            InvalidAddressError: If ``address`` cannot be parsed.
        """
        self._recipients.append(_parse_address(address))
        del self.message["To"]
        self.message["To"] = tuple(self._recipients)

    @property
    def recipients(self) -> list[str]:
        """Bare To addresses, in insertion order."""
        return [addr.addr_spec for addr in self._recipients]

    @property
    def sender(self) -> str | None:
        sender = self.message["From"]
        return str(sender) if sender is not None else None

    def __repr__(self) -> str:
        return f"Mail(sender={self.sender!r}, recipients={self.recipients!r})"
