"""Shared fixtures."""
import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """setup_logging() swaps the package handler; put the original state back after each test."""
    logger = logging.getLogger("simucredito")
    handlers = logger.handlers[:]
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
