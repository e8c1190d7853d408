#!/usr/bin/env python3
"""
Command-line interface for mailforge.

This module provides the main entry point for composing and sending a
message from the shell when mailforge is installed as a package.

Usage:
    mailforge --from ADDR --to ADDR [OPTIONS]

Options:
    --dry-run       Print the rendered message instead of sending it
    --debug         Enable debug logging
    --version       Show version and exit
    --help          Show this message and exit
"""

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from mailforge import __version__
from mailforge.common.config import get_settings
from mailforge.common.exceptions import MailForgeError
from mailforge.smtp.composer import MessageBuilder
from mailforge.smtp.sender import create_smtp_transport


def setup_logging(
    debug: bool = False,
    level: str = "INFO",
    log_format: Optional[str] = None,
) -> None:
    """
    Configure logging for the command-line tool.

    Args:
        debug: Enable debug logging, overriding level.
        level: Log level name used when debug is off.
        log_format: Optional logging format string.
    """
    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)
    log_format = log_format or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )

    if not debug:
        logging.getLogger("aiosmtplib").setLevel(logging.WARNING)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list; sys.argv[1:] when omitted.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="mailforge",
        description="mailforge - compose and send an email",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Preview a message:
        mailforge --from me@example.com --to you@example.com \\
            --subject Hello --body "Hi there" --dry-run

    Send over SSL:
        mailforge --from me@example.com --to you@example.com \\
            --host smtp.example.com --ssl --username me --password secret

Environment Variables:
    MAILFORGE_CONFIG_FILE       TOML configuration file
    MAILFORGE_MAIL_HOSTNAME     Default SMTP host
    MAILFORGE_DEBUG             Enable debug mode (true/false)
        """,
    )

    parser.add_argument("--from", dest="from_address", help="Sender address")
    parser.add_argument(
        "--to", action="append", default=[], metavar="ADDR", help="To recipient (repeatable)"
    )
    parser.add_argument(
        "--cc", action="append", default=[], metavar="ADDR", help="Cc recipient (repeatable)"
    )
    parser.add_argument(
        "--bcc", action="append", default=[], metavar="ADDR", help="Bcc recipient (repeatable)"
    )
    parser.add_argument("--reply-to", metavar="ADDR", help="Reply-To address")
    parser.add_argument("--subject", default="", help="Message subject")
    parser.add_argument("--body", default="", help="Message body")
    parser.add_argument(
        "--html", action="store_true", help="Send the body as text/html"
    )
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Extra header (repeatable)",
    )

    parser.add_argument("--host", help="SMTP server host name")
    parser.add_argument("--port", type=int, help="SMTP server port")
    parser.add_argument("--ssl", action="store_true", help="Use SSL on connect")
    parser.add_argument("--starttls", action="store_true", help="Require STARTTLS")
    parser.add_argument("--username", help="SMTP login user")
    parser.add_argument("--password", help="SMTP login password")

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the rendered message instead of sending it",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"mailforge {__version__}",
    )

    return parser.parse_args(argv)


def build_from_args(args: argparse.Namespace) -> MessageBuilder:
    """
    Create a message builder from parsed arguments.

    Raises:
        MailForgeError: If an address or header is invalid.
    """
    builder = MessageBuilder(get_settings().mail)

    if args.from_address:
        builder.set_from(args.from_address)
    if args.to:
        builder.add_to(*args.to)
    if args.cc:
        builder.add_cc(*args.cc)
    if args.bcc:
        builder.add_bcc(*args.bcc)
    if args.reply_to:
        builder.add_reply_to(args.reply_to)

    builder.set_subject(args.subject)
    builder.set_content(args.body, "text/html" if args.html else "text/plain")

    for header in args.header:
        name, _, value = header.partition("=")
        builder.add_header(name.strip(), value.strip())

    if args.host:
        builder.set_host_name(args.host)
    if args.ssl:
        builder.set_ssl_on_connect(True)
    if args.port:
        if args.ssl:
            builder.set_ssl_smtp_port(args.port)
        else:
            builder.set_smtp_port(args.port)
    if args.starttls:
        builder.set_start_tls_enabled(True)
        builder.set_start_tls_required(True)
    if args.username:
        builder.set_authentication(args.username, args.password)

    return builder


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the mailforge command.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = parse_args(argv)

    if args.debug:
        debug = True
    else:
        debug = os.getenv("MAILFORGE_DEBUG", "").lower() in ("true", "1", "yes")

    try:
        settings = get_settings()
    except MailForgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(debug, settings.logging.level, settings.logging.format)
    logger = logging.getLogger(__name__)

    try:
        builder = build_from_args(args)

        if args.dry_run:
            message = builder.build()
            print(message.as_string())
            return 0

        message_id = builder.send(create_smtp_transport())
        logger.info("Sent message %s", message_id)
        print(message_id)
        return 0

    except MailForgeError as e:
        logger.error("%s", e)
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
