"""Tests for the mailforge command-line interface."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mailforge import __version__
from mailforge.cli import build_from_args, main, parse_args


@pytest.fixture
def smtp_client():
    """Patch the SMTP client used for delivery."""
    with patch("mailforge.smtp.sender.aiosmtplib.SMTP") as smtp_class:
        client = smtp_class.return_value
        for name in ("connect", "ehlo", "starttls", "login", "quit"):
            setattr(client, name, AsyncMock())
        client.send_message = AsyncMock(return_value=({}, "250 OK"))
        client.supports_extension = MagicMock(return_value=True)
        client.is_connected = False
        client.smtp_class = smtp_class
        yield client


def test_dry_run_prints_message(capsys):
    exit_code = main(
        [
            "--from", "Sender <from@example.com>",
            "--to", "to@example.com",
            "--cc", "cc@example.com",
            "--bcc", "bcc@example.com",
            "--reply-to", "reply@example.com",
            "--subject", "Hello",
            "--body", "Hi there",
            "--header", "X-Campaign=spring",
            "--dry-run",
        ]
    )

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "From: Sender <from@example.com>" in output
    assert "To: to@example.com" in output
    assert "Cc: cc@example.com" in output
    assert "Reply-To: reply@example.com" in output
    assert "Subject: Hello" in output
    assert "X-Campaign: spring" in output
    assert "bcc@example.com" not in output


def test_invalid_address_fails(capsys):
    assert main(["--from", "not an address", "--to", "to@example.com", "--dry-run"]) == 1


def test_missing_recipient_fails():
    assert main(["--from", "from@example.com", "--dry-run"]) == 1


def test_invalid_header_fails():
    argv = ["--from", "from@example.com", "--to", "to@example.com", "--dry-run"]
    assert main(argv + ["--header", "X Bad=value"]) == 1


def test_missing_host_fails_before_sending(smtp_client):
    assert main(["--from", "from@example.com", "--to", "to@example.com"]) == 1
    smtp_client.connect.assert_not_awaited()


def test_send(capsys, smtp_client):
    exit_code = main(
        [
            "--from", "from@example.com",
            "--to", "to@example.com",
            "--host", "smtp.example.com",
            "--ssl",
            "--port", "2465",
            "--username", "user",
            "--password", "secret",
        ]
    )

    assert exit_code == 0
    kwargs = smtp_client.smtp_class.call_args.kwargs
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 2465
    assert kwargs["use_tls"] is True
    smtp_client.login.assert_awaited_once_with("user", "secret")
    assert capsys.readouterr().out.strip().endswith("@example.com>")


def test_build_from_args_html_and_starttls():
    args = parse_args(
        [
            "--from", "from@example.com",
            "--to", "to@example.com",
            "--body", "<p>Hi</p>",
            "--html",
            "--host", "smtp.example.com",
            "--port", "587",
            "--starttls",
        ]
    )
    builder = build_from_args(args)

    assert builder.content_type == "text/html"
    session = builder.open_session()
    assert session.port == 587
    assert session.start_tls_required is True


def test_host_from_environment(monkeypatch):
    monkeypatch.setenv("MAILFORGE_MAIL_HOSTNAME", "env.example.com")
    builder = build_from_args(parse_args(["--from", "from@example.com", "--to", "to@example.com"]))
    assert builder.host_name == "env.example.com"


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        parse_args(["--version"])
    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out
