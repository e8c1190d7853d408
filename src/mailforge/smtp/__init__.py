"""
SMTP module for mailforge.

This module provides message composition, the mail session descriptor and
the transport that hands built messages to an SMTP server.
"""

from .composer import BuiltMessage, MessageBuilder
from .sender import SMTPTransport, create_smtp_transport
from .session import SSL_SOCKET_FACTORY, MailSession

__all__ = [
    # Composer classes
    "MessageBuilder",
    "BuiltMessage",
    # Session classes
    "MailSession",
    "SSL_SOCKET_FACTORY",
    # Transport classes
    "SMTPTransport",
    # Utility functions
    "create_smtp_transport",
]
