"""
SMTP transport module for mailforge.

This module hands a built message to an SMTP server described by a
MailSession. The SMTP conversation itself is delegated to aiosmtplib.
"""

import logging
from typing import Optional

import aiosmtplib

from ..common.exceptions import SMTPAuthError, SMTPConnectionError, SMTPError
from .composer import BuiltMessage
from .session import MailSession

logger = logging.getLogger(__name__)


class SMTPTransport:
    """
    Delivers built messages over SMTP.

    This class handles:
    - Implicit TLS when the session asks for SSL on connect
    - Opportunistic or mandatory STARTTLS
    - Login when the session carries credentials
    - Mapping aiosmtplib failures onto mailforge exceptions
    """

    def __init__(self, local_hostname: Optional[str] = None) -> None:
        """
        Initialize the transport.

        Args:
            local_hostname: Name announced in HELO/EHLO; aiosmtplib picks
                the local FQDN when omitted.
        """
        self.local_hostname = local_hostname

    @staticmethod
    def _start_tls_mode(session: MailSession) -> Optional[bool]:
        """
        Translate session flags into a STARTTLS mode.

        True forces STARTTLS, None uses it when the server offers it and
        False never upgrades.
        """
        if session.ssl_on_connect:
            return False
        if session.start_tls_required:
            return True
        if session.start_tls_enabled:
            return None
        return False

    async def send(self, session: MailSession, message: BuiltMessage) -> str:
        """
        Deliver a message.

        The session's connection timeout bounds the TCP (and implicit TLS)
        connect; its socket timeout bounds every later command.

        Args:
            session: Where and how to connect.
            message: The message to deliver.

        Returns:
            The Message-ID of the delivered message.

        Raises:
            SMTPAuthError: If the server rejects the credentials.
            SMTPConnectionError: If the server cannot be reached.
            SMTPError: For any other SMTP failure.
        """
        sender = session.bounce_address or message.get_envelope_from()
        recipients = message.get_envelope_to()
        start_tls = self._start_tls_mode(session)
        tls_context = session.create_ssl_context()

        logger.info(
            "Sending message %s via %s:%d to %d recipients",
            message.message_id,
            session.host,
            session.port,
            len(recipients),
        )

        smtp = aiosmtplib.SMTP(
            hostname=session.host,
            port=session.port,
            local_hostname=self.local_hostname,
            timeout=session.timeout_seconds,
            use_tls=session.ssl_on_connect,
            start_tls=False,
            tls_context=tls_context,
        )

        try:
            await smtp.connect(timeout=session.connection_timeout_seconds)
            # connect() keeps its timeout as the client default
            smtp.timeout = session.timeout_seconds

            if start_tls is not False:
                await smtp.ehlo()
                if start_tls or smtp.supports_extension("starttls"):
                    await smtp.starttls(tls_context=tls_context)
                else:
                    logger.debug("STARTTLS not offered by %s:%d", session.host, session.port)

            if session.requires_auth:
                await smtp.login(session.username, session.password or "")

            errors, response = await smtp.send_message(
                message.mime_message,
                sender=sender,
                recipients=recipients,
            )
            await smtp.quit()

        except aiosmtplib.SMTPAuthenticationError as e:
            logger.error("Authentication failed on %s: %s", session.host, e)
            raise SMTPAuthError(
                f"Authentication failed for {session.host}",
                {"error": str(e)},
            )

        except aiosmtplib.SMTPConnectError as e:
            logger.error("Failed to connect to %s:%d: %s", session.host, session.port, e)
            raise SMTPConnectionError(
                f"Failed to connect to {session.host}:{session.port}",
                {"error": str(e)},
            )

        except aiosmtplib.SMTPException as e:
            logger.error("SMTP error with %s: %s", session.host, e)
            raise SMTPError(
                f"SMTP error with {session.host}",
                {"error": str(e)},
            )

        finally:
            if smtp.is_connected:
                smtp.close()

        # aiosmtplib returns {recipient: (code, message)} for refused recipients
        if errors:
            logger.warning(
                "Message %s refused for %d recipients: %s",
                message.message_id,
                len(errors),
                ", ".join(errors),
            )

        logger.info("Message %s accepted: %s", message.message_id, response)
        return message.message_id


def create_smtp_transport(local_hostname: Optional[str] = None) -> SMTPTransport:
    """
    Factory function to create an SMTPTransport.

    Args:
        local_hostname: Name announced in HELO/EHLO.

    Returns:
        Configured SMTPTransport instance.
    """
    return SMTPTransport(local_hostname=local_hostname)
