from datetime import timedelta

import pytest
from pydantic import ValidationError

from smtp_service.models import DEFAULT_TIMEOUT, ConnectionParameters, TLSMode


class TestConnectionParameters:
    def test_defaults(self):
        params = ConnectionParameters(host="smtp.example.com", port=587)
        assert params.username == ""
        assert params.password == ""
        assert params.require_tls is True
        assert params.timeout == DEFAULT_TIMEOUT
        assert params.uses_auth is False

    def test_timeout_accepts_seconds(self):
        params = ConnectionParameters(host="smtp.example.com", port=587, timeout=2.5)
        assert params.timeout == timedelta(seconds=2.5)
        assert params.timeout_seconds == 2.5

    @pytest.mark.parametrize("port", [0, 65536, -1])
    def test_port_out_of_range(self, port):
        with pytest.raises(ValidationError):
            ConnectionParameters(host="smtp.example.com", port=port)

    @pytest.mark.parametrize("timeout", [0, -1, timedelta(0)])
    def test_timeout_must_be_positive(self, timeout):
        with pytest.raises(ValidationError):
            ConnectionParameters(host="smtp.example.com", port=587, timeout=timeout)

    def test_blank_host_rejected(self):
        with pytest.raises(ValidationError):
            ConnectionParameters(host="   ", port=587)

    def test_host_is_stripped(self):
        assert ConnectionParameters(host=" smtp.example.com ", port=587).host == "smtp.example.com"

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            ConnectionParameters(host="smtp.example.com", port=587, use_ssl=True)

    def test_frozen(self):
        params = ConnectionParameters(host="smtp.example.com", port=587)
        with pytest.raises(ValidationError):
            params.host = "other.example.com"

    def test_password_hidden_from_repr(self):
        params = ConnectionParameters(host="smtp.example.com", port=587, username="u", password="hunter2")
        assert "hunter2" not in repr(params)

    @pytest.mark.parametrize(
        "port,require_tls,expected",
        [
            (465, True, TLSMode.IMPLICIT),
            (587, True, TLSMode.STARTTLS),
            (25, True, TLSMode.STARTTLS),
            (465, False, TLSMode.NONE),
            (25, False, TLSMode.NONE),
        ],
    )
    def test_tls_mode(self, port, require_tls, expected):
        params = ConnectionParameters(host="smtp.example.com", port=port, require_tls=require_tls)
        assert params.tls_mode is expected
