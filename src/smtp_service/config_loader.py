# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for SMTP connection parameters.

``SMTPService`` never reads files itself; embedding applications that keep
relay settings in an INI file can turn them into ``ConnectionParameters``
with this module.

Example:
    Configuration file format (config.ini)::

        [smtp]
        host = smtp.example.com
        port = 587
        username = mailer
        password = secret
        require_tls = true
        # Seconds
        timeout = 10

    Loading and connecting::

        params = load_connection_config("/etc/mailer/config.ini")
        await service.connect_with(params)
"""

from __future__ import annotations

import configparser
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .logger import get_logger
from .models import ConnectionParameters

logger = get_logger("ConnectionConfigLoader")

KNOWN_KEYS = ("host", "port", "username", "password", "require_tls", "timeout")


def load_connection_config(config_path: str, section: str = "smtp") -> ConnectionParameters:
    """Load connection parameters from an INI file section.

    Args:
        config_path: Path to config.ini file.
        section: Section holding the relay settings. Defaults to "smtp".

    Returns:
        Validated ConnectionParameters.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If the section is missing or holds invalid values.
    """
    if not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    # Passwords may contain "%".
    config = configparser.ConfigParser(interpolation=None)
    config.read(config_path)

    if not config.has_section(section):
        raise ValueError(f"No [{section}] section in {config_path}")

    for key in config.options(section):
        if key not in KNOWN_KEYS:
            logger.warning(f"Ignoring unknown key in [{section}] section: {key}")

    values: dict[str, Any] = {}
    try:
        for key in ("host", "username", "password"):
            value = config.get(section, key, fallback=None)
            if value is not None:
                values[key] = value.strip()
        if config.has_option(section, "port"):
            values["port"] = config.getint(section, "port")
        if config.has_option(section, "require_tls"):
            values["require_tls"] = config.getboolean(section, "require_tls")
        if config.has_option(section, "timeout"):
            values["timeout"] = config.getfloat(section, "timeout")
    except ValueError as e:
        logger.error(f"Invalid value in [{section}] section: {e}")
        raise ValueError(f"Invalid value in [{section}] section: {e}") from e

    try:
        params = ConnectionParameters(**values)
    except ValidationError as e:
        logger.error(f"Invalid SMTP configuration in [{section}]: {e}")
        raise ValueError(f"Invalid SMTP configuration in [{section}]: {e}") from e

    logger.info(f"Loaded SMTP configuration for {params.host}:{params.port}")
    return params
