"""mailforge - email composition and SMTP session helper."""

from mailforge.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __version__,
    __version_info__,
    get_version,
    get_version_info,
)
from mailforge.common.exceptions import (
    AlreadyBuiltError,
    EmailError,
    InvalidAddressError,
    InvalidArgumentError,
    MailForgeError,
    MissingFromAddressError,
    MissingHostNameError,
    MissingRecipientError,
)
from mailforge.common.models import ContentType, MailAddress, RecipientType
from mailforge.smtp import (
    SSL_SOCKET_FACTORY,
    BuiltMessage,
    MailSession,
    MessageBuilder,
    SMTPTransport,
)

__all__ = [
    "__version__",
    "__version_info__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
    "get_version",
    "get_version_info",
    # Public API
    "MessageBuilder",
    "BuiltMessage",
    "MailSession",
    "SMTPTransport",
    "SSL_SOCKET_FACTORY",
    "MailAddress",
    "RecipientType",
    "ContentType",
    # Exceptions
    "MailForgeError",
    "EmailError",
    "InvalidAddressError",
    "InvalidArgumentError",
    "MissingFromAddressError",
    "MissingRecipientError",
    "MissingHostNameError",
    "AlreadyBuiltError",
]
