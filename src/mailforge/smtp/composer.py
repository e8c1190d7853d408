"""
Message builder module for mailforge.

This module accumulates recipients, headers, subject, body and transport
settings for an outgoing email, and turns them into an immutable MIME
message exactly once.
"""

import asyncio
import copy
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.header import Header
from email.mime.text import MIMEText
from email.utils import format_datetime, formataddr, make_msgid
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from ..common.config import MailSettings, normalize_charset
from ..common.exceptions import (
    AlreadyBuiltError,
    InvalidArgumentError,
    MissingFromAddressError,
    MissingHostNameError,
    MissingRecipientError,
)
from ..common.models import ContentType, MailAddress, RecipientType
from .session import MailSession

if TYPE_CHECKING:
    from .sender import SMTPTransport

logger = logging.getLogger(__name__)

AddressLike = Union[str, MailAddress]

# RFC 5322 field name: printable ASCII except colon
_HEADER_NAME_RE = re.compile(r"[\x21-\x39\x3b-\x7e]+")
# MIME subtype token, already lower-cased
_TOKEN_RE = re.compile(r"[a-z0-9!#$&^_.+-]+")


@dataclass(frozen=True)
class BuiltMessage:
    """Immutable snapshot of a built message, ready for a transport."""

    message_id: str
    from_address: MailAddress
    to: tuple[MailAddress, ...]
    cc: tuple[MailAddress, ...]
    bcc: tuple[MailAddress, ...]
    reply_to: tuple[MailAddress, ...]
    headers: Mapping[str, str]
    subject: Optional[str]
    content: Optional[str]
    content_type: str
    charset: str
    sent_date: datetime
    _mime: MIMEText = field(repr=False, compare=False)

    def get_recipients(self, recipient_type: RecipientType) -> tuple[MailAddress, ...]:
        """Return the recipients of the given type."""
        if recipient_type == RecipientType.TO:
            return self.to
        if recipient_type == RecipientType.CC:
            return self.cc
        if recipient_type == RecipientType.BCC:
            return self.bcc
        raise InvalidArgumentError(f"Unknown recipient type: {recipient_type!r}")

    @property
    def all_recipients(self) -> tuple[MailAddress, ...]:
        """All envelope recipients: To, then Cc, then Bcc."""
        return self.to + self.cc + self.bcc

    @property
    def mime_message(self) -> MIMEText:
        """A copy of the rendered MIME message."""
        return copy.deepcopy(self._mime)

    def get_header(self, name: str) -> list[str]:
        """Return every value of a header in the rendered message."""
        return [str(value) for value in self._mime.get_all(name, [])]

    def get_envelope_from(self) -> str:
        """Get the envelope FROM address."""
        return self.from_address.email

    def get_envelope_to(self) -> list[str]:
        """Get the envelope TO addresses."""
        return [r.email for r in self.all_recipients]

    def as_string(self) -> str:
        """Render the message as a string."""
        return self._mime.as_string()

    def as_bytes(self) -> bytes:
        """Render the message as bytes."""
        return self._mime.as_bytes()


class MessageBuilder:
    """
    Builds an outgoing email message.

    Recipients, headers and body are collected through chainable setters and
    rendered by build(), which may succeed only once per builder. Transport
    settings (host, ports, timeouts, TLS, credentials) are collected alongside
    and described by open_session().

    After a successful build the message content is frozen: recipient, header,
    subject, body, sender and date setters raise AlreadyBuiltError. Transport
    settings stay mutable since they only affect open_session().
    """

    def __init__(self, settings: Optional[MailSettings] = None) -> None:
        """
        Initialize the builder.

        Args:
            settings: Mail settings used as defaults. A fresh MailSettings,
                read from the environment, is used when omitted.
        """
        self.settings = settings if settings is not None else MailSettings()

        self._to: list[MailAddress] = []
        self._cc: list[MailAddress] = []
        self._bcc: list[MailAddress] = []
        self._reply_to: list[MailAddress] = []
        self._headers: dict[str, str] = {}
        self._subject: Optional[str] = None
        self._content: Optional[str] = None
        self._content_type: Optional[str] = None
        self._from: Optional[MailAddress] = None
        self._bounce_address: Optional[str] = self.settings.bounce_address
        self._charset: str = self.settings.charset
        self._created_at = datetime.now(timezone.utc)
        self._sent_date: Optional[datetime] = None
        self._message: Optional[BuiltMessage] = None

        # Transport settings
        self._host_name: Optional[str] = self.settings.hostname
        self._smtp_port: int = self.settings.smtp_port
        self._ssl_smtp_port: int = self.settings.ssl_smtp_port
        self._socket_connection_timeout: int = self.settings.socket_connection_timeout
        self._socket_timeout: int = self.settings.socket_timeout
        self._ssl_on_connect: bool = self.settings.ssl_on_connect
        self._start_tls_enabled: bool = self.settings.start_tls_enabled
        self._start_tls_required: bool = self.settings.start_tls_required
        self._ssl_check_server_identity: bool = self.settings.ssl_check_server_identity
        self._username: Optional[str] = self.settings.username
        self._password: Optional[str] = self.settings.password
        self._debug: bool = self.settings.debug

    def _check_open(self) -> None:
        if self._message is not None:
            raise AlreadyBuiltError()

    @staticmethod
    def _parse_addresses(addresses: Iterable[AddressLike]) -> list[MailAddress]:
        """Validate every address before any list is touched."""
        parsed = [MailAddress.parse(a) for a in addresses]
        if not parsed:
            raise InvalidArgumentError("Address List provided was invalid")
        return parsed

    def _format_addresses(self, addresses: Iterable[MailAddress]) -> str:
        """Render mailboxes for a header; only display names get RFC 2047 encoded."""
        return ", ".join(
            formataddr((a.display_name, a.email), charset=self._charset) for a in addresses
        )

    # Recipients

    def add_to(self, *addresses: AddressLike) -> "MessageBuilder":
        """
        Add one or more To recipients.

        Raises:
            InvalidAddressError: If any address is malformed. No address is
                added in that case.
        """
        self._check_open()
        self._to.extend(self._parse_addresses(addresses))
        return self

    def add_cc(self, *addresses: AddressLike) -> "MessageBuilder":
        """Add one or more Cc recipients."""
        self._check_open()
        self._cc.extend(self._parse_addresses(addresses))
        return self

    def add_bcc(self, *addresses: AddressLike) -> "MessageBuilder":
        """Add one or more Bcc recipients."""
        self._check_open()
        self._bcc.extend(self._parse_addresses(addresses))
        return self

    def add_reply_to(
        self, address: AddressLike, display_name: Optional[str] = None
    ) -> "MessageBuilder":
        """Add a Reply-To address with an optional display name."""
        self._check_open()
        self._reply_to.append(MailAddress.parse(address, display_name))
        return self

    @property
    def to_addresses(self) -> tuple[MailAddress, ...]:
        return tuple(self._to)

    @property
    def cc_addresses(self) -> tuple[MailAddress, ...]:
        return tuple(self._cc)

    @property
    def bcc_addresses(self) -> tuple[MailAddress, ...]:
        return tuple(self._bcc)

    @property
    def reply_to_addresses(self) -> tuple[MailAddress, ...]:
        return tuple(self._reply_to)

    # Sender

    def set_from(
        self, address: AddressLike, display_name: Optional[str] = None
    ) -> "MessageBuilder":
        """
        Set the From address.

        Raises:
            InvalidAddressError: If the address is malformed.
        """
        self._check_open()
        self._from = MailAddress.parse(address, display_name)
        return self

    @property
    def from_address(self) -> Optional[MailAddress]:
        return self._from

    def set_bounce_address(self, address: Optional[str]) -> "MessageBuilder":
        """Set the envelope sender that receives bounces."""
        self._check_open()
        self._bounce_address = MailAddress.parse(address).email if address else None
        return self

    @property
    def bounce_address(self) -> Optional[str]:
        return self._bounce_address

    # Headers

    def add_header(self, name: Optional[str], value: Optional[str]) -> "MessageBuilder":
        """
        Add a custom header, replacing any earlier value for the same name.

        Raises:
            InvalidArgumentError: If the name or the value is None or empty,
                if the name is not a valid field name, or if the value contains
                a line break. The name is checked first.
        """
        self._check_open()
        if not name:
            raise InvalidArgumentError("name can not be null or empty")
        if not _HEADER_NAME_RE.fullmatch(name):
            raise InvalidArgumentError(f"Invalid header name: {name!r}")
        if not value:
            raise InvalidArgumentError("value can not be null or empty")
        if "\r" in value or "\n" in value:
            raise InvalidArgumentError(f"Header value for {name} can not contain line breaks")
        self._headers[name] = value
        return self

    def set_headers(self, headers: Mapping[str, str]) -> "MessageBuilder":
        """Replace all custom headers."""
        self._check_open()
        previous = self._headers
        self._headers = {}
        try:
            for name, value in headers.items():
                self.add_header(name, value)
        except InvalidArgumentError:
            self._headers = previous
            raise
        return self

    @property
    def headers(self) -> Mapping[str, str]:
        return MappingProxyType(self._headers)

    # Content

    def set_subject(self, subject: Optional[str]) -> "MessageBuilder":
        self._check_open()
        self._subject = subject
        return self

    @property
    def subject(self) -> Optional[str]:
        return self._subject

    def set_body(self, content: Optional[str]) -> "MessageBuilder":
        """
        Set a plain text body.

        Raises:
            InvalidArgumentError: If content is None.
        """
        if content is None:
            raise InvalidArgumentError("Message cannot be null")
        return self.set_content(content, ContentType.PLAIN)

    def set_content(
        self, content: str, content_type: Union[str, ContentType] = ContentType.PLAIN
    ) -> "MessageBuilder":
        """
        Set the body with an explicit text content type.

        Args:
            content: Body text.
            content_type: A text/* MIME type, "text/plain" by default.

        Raises:
            InvalidArgumentError: If content is None or the type is not text.
        """
        self._check_open()
        if content is None:
            raise InvalidArgumentError("Message cannot be null")
        if isinstance(content_type, ContentType):
            content_type = content_type.value
        content_type = content_type.lower()
        main_type, _, subtype = content_type.partition("/")
        if main_type != "text" or not _TOKEN_RE.fullmatch(subtype):
            raise InvalidArgumentError(f"Unsupported content type: {content_type}")
        self._content = content
        self._content_type = content_type
        return self

    @property
    def content(self) -> Optional[str]:
        return self._content

    @property
    def content_type(self) -> Optional[str]:
        return self._content_type

    def set_charset(self, charset: str) -> "MessageBuilder":
        self._check_open()
        try:
            self._charset = normalize_charset(charset)
        except ValueError as e:
            raise InvalidArgumentError(str(e)) from e
        return self

    @property
    def charset(self) -> str:
        return self._charset

    # Dates

    def set_sent_date(self, sent_date: Optional[datetime]) -> "MessageBuilder":
        """Set the Date header value; None restores the default."""
        self._check_open()
        self._sent_date = sent_date
        return self

    @property
    def sent_date(self) -> datetime:
        """The explicit sent date, or the time this builder was created."""
        return self._sent_date if self._sent_date is not None else self._created_at

    # Transport settings

    def set_host_name(self, host_name: Optional[str]) -> "MessageBuilder":
        self._host_name = host_name
        return self

    @property
    def host_name(self) -> Optional[str]:
        return self._host_name

    def set_smtp_port(self, port: int) -> "MessageBuilder":
        self._smtp_port = port
        return self

    @property
    def smtp_port(self) -> int:
        return self._smtp_port

    def set_ssl_smtp_port(self, port: int) -> "MessageBuilder":
        self._ssl_smtp_port = port
        return self

    @property
    def ssl_smtp_port(self) -> int:
        return self._ssl_smtp_port

    def set_socket_connection_timeout(self, timeout: int) -> "MessageBuilder":
        """Set the socket connection timeout in milliseconds."""
        self._socket_connection_timeout = timeout
        return self

    @property
    def socket_connection_timeout(self) -> int:
        return self._socket_connection_timeout

    def set_socket_timeout(self, timeout: int) -> "MessageBuilder":
        """Set the socket read timeout in milliseconds."""
        self._socket_timeout = timeout
        return self

    @property
    def socket_timeout(self) -> int:
        return self._socket_timeout

    def set_ssl_on_connect(self, ssl_on_connect: bool) -> "MessageBuilder":
        self._ssl_on_connect = ssl_on_connect
        return self

    @property
    def ssl_on_connect(self) -> bool:
        return self._ssl_on_connect

    def set_start_tls_enabled(self, enabled: bool) -> "MessageBuilder":
        self._start_tls_enabled = enabled
        return self

    def set_start_tls_required(self, required: bool) -> "MessageBuilder":
        self._start_tls_required = required
        return self

    def set_ssl_check_server_identity(self, check: bool) -> "MessageBuilder":
        self._ssl_check_server_identity = check
        return self

    def set_authentication(
        self, username: Optional[str], password: Optional[str]
    ) -> "MessageBuilder":
        """Set SMTP login credentials; None clears them."""
        self._username = username
        self._password = password
        return self

    def set_debug(self, debug: bool) -> "MessageBuilder":
        self._debug = debug
        return self

    # Building

    @property
    def is_built(self) -> bool:
        return self._message is not None

    @property
    def built_message(self) -> Optional[BuiltMessage]:
        return self._message

    @property
    def mime_message(self) -> Optional[MIMEText]:
        """The rendered MIME message, or None before build()."""
        if self._message is None:
            return None
        return self._message.mime_message

    def _resolve_from(self) -> MailAddress:
        if self._from is not None:
            return self._from
        if self.settings.default_from:
            return MailAddress.parse(self.settings.default_from)
        raise MissingFromAddressError()

    def build(self) -> BuiltMessage:
        """
        Build the message.

        Returns:
            The immutable BuiltMessage.

        Raises:
            AlreadyBuiltError: If this builder already built a message.
            MissingFromAddressError: If no From address is available.
            MissingRecipientError: If To, Cc and Bcc are all empty.
        """
        self._check_open()

        sender = self._resolve_from()
        if not (self._to or self._cc or self._bcc):
            raise MissingRecipientError()

        content_type = self._content_type or ContentType.PLAIN.value
        subtype = content_type.split("/", 1)[1]
        msg = MIMEText(self._content or "", subtype, self._charset)

        sender_domain = sender.email.rsplit("@", 1)[-1]
        message_id = make_msgid(domain=sender_domain)
        sent_date = self.sent_date

        if self._subject is not None:
            if self._subject.isascii():
                msg["Subject"] = self._subject
            else:
                msg["Subject"] = Header(self._subject, self._charset)
        msg["From"] = self._format_addresses([sender])
        if self._to:
            msg["To"] = self._format_addresses(self._to)
        if self._cc:
            msg["Cc"] = self._format_addresses(self._cc)
        # Bcc is not added to headers
        if self._reply_to:
            msg["Reply-To"] = self._format_addresses(self._reply_to)
        msg["Date"] = format_datetime(sent_date)
        msg["Message-ID"] = message_id

        if self.settings.x_mailer:
            msg["X-Mailer"] = self.settings.x_mailer

        for header, value in self._headers.items():
            if header in msg:
                del msg[header]
            msg[header] = value

        built = BuiltMessage(
            message_id=message_id,
            from_address=sender,
            to=tuple(self._to),
            cc=tuple(self._cc),
            bcc=tuple(self._bcc),
            reply_to=tuple(self._reply_to),
            headers=MappingProxyType(dict(self._headers)),
            subject=self._subject,
            content=self._content,
            content_type=content_type,
            charset=self._charset,
            sent_date=sent_date,
            _mime=msg,
        )
        self._message = built

        logger.debug(
            "Built message: message_id=%s, from=%s, to=%d, cc=%d, bcc=%d",
            message_id,
            sender.email,
            len(self._to),
            len(self._cc),
            len(self._bcc),
        )

        return built

    # Session

    def open_session(self) -> MailSession:
        """
        Describe the SMTP session for this message.

        Returns:
            MailSession carrying host, port, timeouts and TLS settings.

        Raises:
            MissingHostNameError: If no host name is configured.
        """
        if not self._host_name:
            raise MissingHostNameError()

        session = MailSession(
            host=self._host_name,
            port=self._ssl_smtp_port if self._ssl_on_connect else self._smtp_port,
            socket_connection_timeout=self._socket_connection_timeout,
            socket_timeout=self._socket_timeout,
            ssl_on_connect=self._ssl_on_connect,
            start_tls_enabled=self._start_tls_enabled,
            start_tls_required=self._start_tls_required,
            ssl_check_server_identity=self._ssl_check_server_identity,
            username=self._username,
            password=self._password,
            bounce_address=self._bounce_address,
            debug=self._debug,
        )

        logger.debug(
            "Opened mail session for %s:%d (ssl_on_connect=%s, starttls=%s)",
            session.host,
            session.port,
            session.ssl_on_connect,
            session.start_tls_enabled,
        )

        return session

    # Sending

    async def send_async(self, transport: Optional["SMTPTransport"] = None) -> str:
        """
        Build the message and deliver it.

        Args:
            transport: Transport to use; a default SMTPTransport otherwise.

        Returns:
            The Message-ID of the delivered message.
        """
        from .sender import SMTPTransport

        session = self.open_session()
        message = self.build()
        if transport is None:
            transport = SMTPTransport()
        return await transport.send(session, message)

    def send(self, transport: Optional["SMTPTransport"] = None) -> str:
        """Synchronous form of send_async()."""
        return asyncio.run(self.send_async(transport))

    def to_dict(self) -> dict[str, Any]:
        """Summarize the builder state (without credentials)."""
        return {
            "from": self._from.to_dict() if self._from else None,
            "to": [a.to_dict() for a in self._to],
            "cc": [a.to_dict() for a in self._cc],
            "bcc": [a.to_dict() for a in self._bcc],
            "reply_to": [a.to_dict() for a in self._reply_to],
            "headers": dict(self._headers),
            "subject": self._subject,
            "content_type": self._content_type,
            "sent_date": self.sent_date.isoformat(),
            "host_name": self._host_name,
            "is_built": self.is_built,
        }
