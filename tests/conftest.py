"""
Pytest fixtures for mailforge tests.

This module provides common fixtures used across test modules.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from mailforge.common.config import MailSettings, get_settings  # noqa: E402
from mailforge.smtp.composer import MessageBuilder  # noqa: E402

TEST_EMAILS = [
    "ab@bc.com",
    "a.b@c.org",
    "abcdefghijklmnopqrst@abcdefghijklmnopqrst.com.bd",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep MAILFORGE_* variables from the host out of every test."""
    for name in list(os.environ):
        if name.startswith("MAILFORGE_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mail_settings():
    """Provide default mail settings."""
    return MailSettings()


@pytest.fixture
def builder(mail_settings):
    """Provide a fresh message builder."""
    return MessageBuilder(mail_settings)


@pytest.fixture
def ready_builder(builder):
    """Provide a builder holding everything build() needs."""
    return (
        builder.set_subject("Test Subject")
        .set_body("This is a message.")
        .set_from("setFrom@example.com")
        .add_to("addTo@example.com")
        .set_host_name("Host123")
    )
