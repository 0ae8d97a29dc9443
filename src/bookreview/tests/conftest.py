"""
Core pytest configuration for the test suite.

Shared fixtures live here; domain-specific ones are in tests/test_fixtures/ and are
imported at the bottom so every test module can use them without imports.
"""

from __future__ import annotations

import logging

# -------------------------------
# Early logging tuning
# -------------------------------
# Quiet third-party loggers before anything imports them.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest

from bookreview.config.settings import Settings
from bookreview.core.logging.builder import setup_logging
from bookreview.exceptions.classifier import ErrorClassifier, get_default_classifier


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    # Explicit values so a developer's .env / environment can't change test outcomes.
    return Settings(
        ENV="testing",
        LOG_LEVEL="INFO",
        LOG_FORMAT="json",
        LOG_TO_STDOUT=True,
        ERROR_MESSAGE_MAX_LENGTH=200,
        LOG_UNMATCHED_ERRORS=True,
    )


@pytest.fixture(scope="session", autouse=True)
def configure_logging(test_settings: Settings):
    """Install the application's logging config once for the whole session."""
    setup_logging(test_settings)
    yield


@pytest.fixture(autouse=True)
def clear_default_classifier():
    # get_default_classifier() caches settings-derived state; keep tests independent.
    get_default_classifier.cache_clear()
    yield
    get_default_classifier.cache_clear()


@pytest.fixture
def classifier() -> ErrorClassifier:
    """A classifier with the shipped tables and the default 200-char limit."""
    return ErrorClassifier(max_length=200)


from .test_fixtures.db_fixtures import (  # noqa: E402,F401
    async_engine,
    db_session,
)
