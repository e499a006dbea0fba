# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the SMTP service.

The package never installs handlers. Level, handlers and format are the
embedding application's business (typically ``logging.basicConfig()`` in
its entry point).

Example:
    Typical usage in a module::

        from smtp_service.logger import get_logger

        logger = get_logger("SMTPService")
        logger.info("Connected")
"""

import logging


def get_logger(name: str = "SMTPService") -> logging.Logger:
    """Retrieve the logger for the given name.

    Args:
        name: The logger name. Defaults to "SMTPService".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)
