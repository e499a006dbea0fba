"""Tests for connection configuration loading from config.ini."""

from datetime import timedelta

import pytest

from smtp_service.config_loader import load_connection_config


def test_load_connection_config(tmp_path):
    config_file = tmp_path / "config.ini"
    config_file.write_text("""
[smtp]
host = smtp.example.com
port = 587
username = mailer
password = 50%secret
require_tls = yes
timeout = 2.5
""")

    params = load_connection_config(str(config_file))

    assert params.host == "smtp.example.com"
    assert params.port == 587
    assert params.username == "mailer"
    assert params.password == "50%secret"
    assert params.require_tls is True
    assert params.timeout == timedelta(seconds=2.5)


def test_load_connection_config_defaults(tmp_path):
    config_file = tmp_path / "config.ini"
    config_file.write_text("""
[relay]
host = relay.local
port = 25
""")

    params = load_connection_config(str(config_file), section="relay")

    assert params.username == ""
    assert params.require_tls is True
    assert params.timeout == timedelta(seconds=10)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_connection_config(str(tmp_path / "missing.ini"))


def test_missing_section(tmp_path):
    config_file = tmp_path / "config.ini"
    config_file.write_text("[other]\nkey = value\n")

    with pytest.raises(ValueError, match=r"No \[smtp\] section"):
        load_connection_config(str(config_file))


@pytest.mark.parametrize(
    "body",
    [
        "host = smtp.example.com\nport = not-a-number\n",
        "host = smtp.example.com\nport = 70000\n",
        "host = smtp.example.com\nport = 587\nrequire_tls = maybe\n",
        "host = smtp.example.com\nport = 587\ntimeout = 0\n",
        "port = 587\n",
    ],
)
def test_invalid_values(tmp_path, body):
    config_file = tmp_path / "config.ini"
    config_file.write_text("[smtp]\n" + body)

    with pytest.raises(ValueError):
        load_connection_config(str(config_file))


def test_unknown_keys_are_ignored(tmp_path, caplog):
    config_file = tmp_path / "config.ini"
    config_file.write_text("[smtp]\nhost = smtp.example.com\nport = 587\nuse_ssl = true\n")

    params = load_connection_config(str(config_file))

    assert params.host == "smtp.example.com"
    assert "use_ssl" in caplog.text
