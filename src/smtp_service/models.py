# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for the SMTP service.

Models:
    - TLSMode: How TLS is negotiated with the relay
    - ConnectionParameters: Everything needed to open a relay connection
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TIMEOUT = timedelta(seconds=10)
IMPLICIT_TLS_PORT = 465


class TLSMode(str, Enum):
    """TLS negotiation modes.

    Attributes:
        NONE: Plain SMTP, no encryption.
        STARTTLS: Plain connection upgraded with STARTTLS.
        IMPLICIT: TLS from the first byte (SMTPS, port 465).
    """

    NONE = "none"
    STARTTLS = "starttls"
    IMPLICIT = "implicit"


class ConnectionParameters(BaseModel):
    """Parameters of a single relay connection.

    Captured once per connection attempt and replaced wholesale when the
    service connects again.

    Attributes:
        host: SMTP relay hostname.
        port: SMTP relay port.
        username: Login user name. Empty means no authentication.
        password: Login password.
        require_tls: Whether the connection must be encrypted.
        timeout: Bound for the network connect and for each read.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: Annotated[
        str,
        Field(min_length=1, max_length=255, description="SMTP relay hostname")
    ]
    port: Annotated[
        int,
        Field(ge=1, le=65535, description="SMTP relay port")
    ]
    username: Annotated[
        str,
        Field(default="", max_length=255, description="SMTP login user name")
    ]
    password: Annotated[
        str,
        Field(default="", max_length=255, repr=False, description="SMTP login password")
    ]
    require_tls: Annotated[
        bool,
        Field(default=True, description="Require an encrypted connection")
    ]
    timeout: Annotated[
        timedelta,
        Field(default=DEFAULT_TIMEOUT, description="Connect and read timeout")
    ]

    @field_validator("host")
    @classmethod
    def host_not_blank(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank hostnames."""
        v = v.strip()
        if not v:
            raise ValueError("host must not be blank")
        return v

    @field_validator("timeout")
    @classmethod
    def timeout_positive(cls, v: timedelta) -> timedelta:
        """Validate that the timeout is strictly positive."""
        if v <= timedelta(0):
            raise ValueError("timeout must be positive")
        return v

    @property
    def timeout_seconds(self) -> float:
        return self.timeout.total_seconds()

    @property
    def tls_mode(self) -> TLSMode:
        """TLS negotiation mode derived from ``require_tls`` and the port."""
        if not self.require_tls:
            return TLSMode.NONE
        if self.port == IMPLICIT_TLS_PORT:
            return TLSMode.IMPLICIT
        return TLSMode.STARTTLS

    @property
    def uses_auth(self) -> bool:
        return bool(self.username)
