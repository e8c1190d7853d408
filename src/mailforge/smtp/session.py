"""
Mail session descriptor for mailforge.

A MailSession describes how an SMTP transport should reach the mail server:
host, port, timeouts and TLS behaviour. It is immutable and carries no open
connection; the transport turns it into one.
"""

import ssl
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..common.config import MailSettings
from ..common.exceptions import MissingHostNameError

# Socket factory name recorded in the session properties when SSL on connect
# is requested. Mail transports key implicit TLS off this value.
SSL_SOCKET_FACTORY = "javax.net.ssl.SSLSocketFactory"

# Session property names
MAIL_TRANSPORT_PROTOCOL = "mail.transport.protocol"
MAIL_DEBUG = "mail.debug"
MAIL_HOST = "mail.smtp.host"
MAIL_PORT = "mail.smtp.port"
MAIL_SMTP_FROM = "mail.smtp.from"
MAIL_SMTP_AUTH = "mail.smtp.auth"
MAIL_SMTP_CONNECTIONTIMEOUT = "mail.smtp.connectiontimeout"
MAIL_SMTP_TIMEOUT = "mail.smtp.timeout"
MAIL_TRANSPORT_STARTTLS_ENABLE = "mail.smtp.starttls.enable"
MAIL_TRANSPORT_STARTTLS_REQUIRED = "mail.smtp.starttls.required"
MAIL_SMTP_SOCKET_FACTORY_PORT = "mail.smtp.socketFactory.port"
MAIL_SMTP_SOCKET_FACTORY_CLASS = "mail.smtp.socketFactory.class"
MAIL_SMTP_SOCKET_FACTORY_FALLBACK = "mail.smtp.socketFactory.fallback"
MAIL_SMTP_SSL_CHECKSERVERIDENTITY = "mail.smtp.ssl.checkserveridentity"


def _flag(value: bool) -> str:
    return "true" if value else "false"


@dataclass(frozen=True)
class MailSession:
    """Immutable description of an SMTP session."""

    host: str
    port: int = 25
    socket_connection_timeout: int = 60000
    socket_timeout: int = 60000
    ssl_on_connect: bool = False
    start_tls_enabled: bool = False
    start_tls_required: bool = False
    ssl_check_server_identity: bool = False
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    bounce_address: Optional[str] = None
    debug: bool = False

    def __post_init__(self) -> None:
        if not self.host:
            raise MissingHostNameError()

    @classmethod
    def from_settings(cls, settings: MailSettings) -> "MailSession":
        """
        Create a session from mail settings.

        Args:
            settings: Mail settings providing host, ports and TLS options.

        Returns:
            MailSession instance.

        Raises:
            MissingHostNameError: If the settings name no SMTP host.
        """
        if not settings.hostname:
            raise MissingHostNameError()

        return cls(
            host=settings.hostname,
            port=settings.ssl_smtp_port if settings.ssl_on_connect else settings.smtp_port,
            socket_connection_timeout=settings.socket_connection_timeout,
            socket_timeout=settings.socket_timeout,
            ssl_on_connect=settings.ssl_on_connect,
            start_tls_enabled=settings.start_tls_enabled,
            start_tls_required=settings.start_tls_required,
            ssl_check_server_identity=settings.ssl_check_server_identity,
            username=settings.username,
            password=settings.password,
            bounce_address=settings.bounce_address,
            debug=settings.debug,
        )

    @property
    def requires_auth(self) -> bool:
        """Whether the transport must log in before sending."""
        return bool(self.username)

    @property
    def socket_factory(self) -> Optional[str]:
        """Socket factory selected for the connection, if any."""
        if self.ssl_on_connect:
            return SSL_SOCKET_FACTORY
        return None

    @property
    def timeout_seconds(self) -> float:
        """Socket read timeout converted to seconds."""
        return self.socket_timeout / 1000

    @property
    def connection_timeout_seconds(self) -> float:
        """Socket connect timeout converted to seconds."""
        return self.socket_connection_timeout / 1000

    @property
    def properties(self) -> Mapping[str, str]:
        """
        Flat property view of the session.

        Keys follow the conventional mail.smtp.* naming used by mail
        transports. Optional settings are omitted when unset.
        """
        props: dict[str, str] = {
            MAIL_TRANSPORT_PROTOCOL: "smtp",
            MAIL_HOST: self.host,
            MAIL_PORT: str(self.port),
            MAIL_DEBUG: _flag(self.debug),
            MAIL_TRANSPORT_STARTTLS_ENABLE: _flag(self.start_tls_enabled),
            MAIL_TRANSPORT_STARTTLS_REQUIRED: _flag(self.start_tls_required),
            MAIL_SMTP_CONNECTIONTIMEOUT: str(self.socket_connection_timeout),
            MAIL_SMTP_TIMEOUT: str(self.socket_timeout),
        }

        if self.requires_auth:
            props[MAIL_SMTP_AUTH] = "true"

        if self.ssl_on_connect:
            props[MAIL_SMTP_SOCKET_FACTORY_PORT] = str(self.port)
            props[MAIL_SMTP_SOCKET_FACTORY_CLASS] = SSL_SOCKET_FACTORY
            props[MAIL_SMTP_SOCKET_FACTORY_FALLBACK] = "false"

        if (self.ssl_on_connect or self.start_tls_enabled) and self.ssl_check_server_identity:
            props[MAIL_SMTP_SSL_CHECKSERVERIDENTITY] = "true"

        if self.bounce_address:
            props[MAIL_SMTP_FROM] = self.bounce_address

        return MappingProxyType(props)

    def get_property(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return a single session property."""
        return self.properties.get(name, default)

    def create_ssl_context(self) -> Optional[ssl.SSLContext]:
        """
        Create the SSL context used for implicit TLS or STARTTLS.

        Returns:
            An SSLContext, or None when the session uses plain SMTP.
        """
        if not (self.ssl_on_connect or self.start_tls_enabled or self.start_tls_required):
            return None

        ssl_context = ssl.create_default_context()
        if not self.ssl_check_server_identity:
            ssl_context.check_hostname = False
        return ssl_context

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (without the password)."""
        return {
            "host": self.host,
            "port": self.port,
            "socket_connection_timeout": self.socket_connection_timeout,
            "socket_timeout": self.socket_timeout,
            "ssl_on_connect": self.ssl_on_connect,
            "start_tls_enabled": self.start_tls_enabled,
            "start_tls_required": self.start_tls_required,
            "ssl_check_server_identity": self.ssl_check_server_identity,
            "username": self.username,
            "bounce_address": self.bounce_address,
            "debug": self.debug,
        }
