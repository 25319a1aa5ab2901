"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any application import so the settings
object never picks up real Shopify credentials from the developer's shell.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.pop("SHOPIFY_ACCESS_TOKEN", None)
os.environ.pop("SHOPIFY_STORE_DOMAIN", None)
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from fakes import FakeTime, RecordingSleep  # noqa: E402


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
