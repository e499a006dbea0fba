# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Error types raised by the SMTP service.

Every error carries a short machine-readable ``code`` next to its
human-readable message. Errors coming from the SMTP library are chained
(``raise ... from exc``) so the original cause stays available.
"""


class SMTPServiceError(Exception):
    """Base class for all SMTP service errors."""

    default_message = "SMTP service error"
    code = "smtp_service_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class SMTPConnectionError(SMTPServiceError):
    """Raised when a connection to the relay cannot be opened.

    Covers network failures, timeouts, rejected credentials and failed TLS
    negotiation, both on an explicit connect and on a transparent reconnect.
    """

    default_message = "Unable to connect to SMTP relay"
    code = "connection_failed"


class NotConnectedError(SMTPServiceError):
    """Raised when an operation needs a connection and none was ever opened."""

    default_message = "SMTP service is not connected"
    code = "not_connected"


class SendError(SMTPServiceError):
    """Raised when the relay did not accept a message."""

    default_message = "Failed to send mail"
    code = "send_failed"


class DisconnectError(SMTPServiceError):
    """Raised when closing the transport failed. Local state is already cleared."""

    default_message = "Failed to close SMTP connection"
    code = "disconnect_failed"


class InvalidAddressError(SMTPServiceError, ValueError):
    """Raised when a sender or recipient address cannot be parsed."""

    default_message = "Invalid email address"
    code = "invalid_address"
