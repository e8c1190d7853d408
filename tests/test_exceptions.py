"""Tests for the mailforge exception hierarchy."""

import pytest

from mailforge.common.exceptions import (
    AlreadyBuiltError,
    EmailError,
    InvalidArgumentError,
    InvalidConfigError,
    MailForgeError,
    MissingConfigError,
    MissingFromAddressError,
    MissingHostNameError,
    MissingRecipientError,
    SMTPAuthError,
    SMTPConnectionError,
    SMTPError,
)


@pytest.mark.parametrize(
    "exc, message",
    [
        (MissingFromAddressError(), "From address required"),
        (MissingRecipientError(), "At least one receiver address required"),
        (MissingHostNameError(), "Cannot find valid hostname for mail session"),
        (AlreadyBuiltError(), "The MimeMessage is already built."),
    ],
)
def test_fixed_messages(exc, message):
    assert str(exc) == message
    assert exc.message == message
    assert isinstance(exc, EmailError)


def test_details_are_appended():
    exc = MailForgeError("Something failed", {"code": 1})
    assert str(exc) == "Something failed - Details: {'code': 1}"
    assert exc.details == {"code": 1}


def test_builtin_bases():
    assert issubclass(InvalidArgumentError, ValueError)
    assert issubclass(AlreadyBuiltError, RuntimeError)


def test_smtp_hierarchy():
    assert issubclass(SMTPConnectionError, SMTPError)
    assert issubclass(SMTPAuthError, SMTPError)
    assert issubclass(SMTPError, MailForgeError)


def test_config_errors():
    missing = MissingConfigError("MAILFORGE_CONFIG_FILE")
    assert str(missing) == "Missing required configuration: 'MAILFORGE_CONFIG_FILE'"

    invalid = InvalidConfigError("level", "LOUD", "unknown level")
    assert str(invalid) == "Invalid configuration value for 'level': LOUD - unknown level"
    assert invalid.reason == "unknown level"
