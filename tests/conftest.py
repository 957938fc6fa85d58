"""Shared fixtures for the shrinkray tests."""

import pytest

from shrinkray.utils import LogLevel, logger


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.configure_file_sink(None)
    logger.set_log_level(LogLevel.INFO)
