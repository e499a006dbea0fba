import asyncio

import pytest

from smtp_service import service as service_module
from smtp_service.mail import Mail, MailSession
from smtp_service.service import SMTPService


class FakeTransport:
    def __init__(self, params):
        self.params = params
        self.connected = True
        self.closed = False
        self.sent = []
        self.send_error = None
        self.close_error = None

    def is_connected(self):
        return self.connected and not self.closed

    async def send(self, message, recipients):
        await asyncio.sleep(0)
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((message, list(recipients)))

    async def close(self):
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeRelay:
    """Transport factory recording every open attempt."""

    def __init__(self):
        self.attempts = 0
        self.opened = []
        self.delay = 0.0
        self.error = None

    async def __call__(self, params):
        self.attempts += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        transport = FakeTransport(params)
        self.opened.append(transport)
        return transport

    @property
    def last(self):
        return self.opened[-1]


@pytest.fixture(autouse=True)
def unicode_process_encoding(monkeypatch):
    monkeypatch.setattr(service_module, "process_encoding", lambda: "utf-8")


@pytest.fixture
def relay():
    return FakeRelay()


@pytest.fixture
def service(relay):
    return SMTPService(relay)


@pytest.fixture
def make_mail():
    def factory(*recipients, host="smtp.example.com"):
        mail = Mail(MailSession(host=host, port=587))
        mail.set_sender("noreply@example.com", "Example")
        mail.set_subject("Hello")
        mail.set_html_content("<p>Hello</p>")
        for address in recipients:
            mail.add_recipient(address)
        return mail

    return factory
