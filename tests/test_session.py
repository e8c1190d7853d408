"""Tests for mail session descriptors."""

import dataclasses
import ssl

import pytest

from mailforge.common.config import MailSettings
from mailforge.common.exceptions import MissingHostNameError
from mailforge.smtp.session import SSL_SOCKET_FACTORY, MailSession


class TestOpenSession:
    """Sessions produced by MessageBuilder.open_session()."""

    def test_host_property(self, builder):
        builder.set_host_name("smtp.example.com")
        session = builder.open_session()
        assert session is not None
        assert session.get_property("mail.smtp.host") == "smtp.example.com"
        assert session.port == 25

    def test_ssl_socket_factory(self, builder):
        builder.set_host_name("Host123").set_ssl_on_connect(True)
        session = builder.open_session()
        assert session.get_property("mail.smtp.socketFactory.class") is not None
        assert session.get_property("mail.smtp.socketFactory.class") == "javax.net.ssl.SSLSocketFactory"
        assert session.socket_factory == SSL_SOCKET_FACTORY
        assert session.port == 465
        assert session.get_property("mail.smtp.socketFactory.port") == "465"
        assert session.get_property("mail.smtp.socketFactory.fallback") == "false"

    def test_no_socket_factory_without_ssl(self, builder):
        session = builder.set_host_name("Host123").open_session()
        assert session.socket_factory is None
        assert "mail.smtp.socketFactory.class" not in session.properties

    def test_missing_host_name(self, builder):
        with pytest.raises(MissingHostNameError) as exc_info:
            builder.open_session()
        assert str(exc_info.value) == "Cannot find valid hostname for mail session"

    def test_timeouts(self, builder):
        builder.set_host_name("Host123").set_socket_timeout(5000)
        builder.set_socket_connection_timeout(2500)
        session = builder.open_session()
        assert session.get_property("mail.smtp.timeout") == "5000"
        assert session.get_property("mail.smtp.connectiontimeout") == "2500"
        assert session.timeout_seconds == 5.0
        assert session.connection_timeout_seconds == 2.5

    def test_custom_ports(self, builder):
        builder.set_host_name("Host123").set_smtp_port(2525).set_ssl_smtp_port(4650)
        assert builder.open_session().port == 2525
        builder.set_ssl_on_connect(True)
        assert builder.open_session().port == 4650

    def test_authentication(self, builder):
        builder.set_host_name("Host123").set_authentication("user", "secret")
        session = builder.open_session()
        assert session.requires_auth
        assert session.get_property("mail.smtp.auth") == "true"
        assert "secret" not in repr(session)
        assert "password" not in session.to_dict()

    def test_bounce_address(self, builder):
        builder.set_host_name("Host123").set_bounce_address("bounce@example.com")
        session = builder.open_session()
        assert session.get_property("mail.smtp.from") == "bounce@example.com"

    def test_starttls_flags(self, builder):
        builder.set_host_name("Host123").set_start_tls_enabled(True)
        builder.set_start_tls_required(True).set_ssl_check_server_identity(True)
        session = builder.open_session()
        assert session.get_property("mail.smtp.starttls.enable") == "true"
        assert session.get_property("mail.smtp.starttls.required") == "true"
        assert session.get_property("mail.smtp.ssl.checkserveridentity") == "true"

    def test_debug_flag(self, builder):
        session = builder.set_host_name("Host123").set_debug(True).open_session()
        assert session.get_property("mail.debug") == "true"

    def test_open_session_does_not_build(self, ready_builder):
        ready_builder.open_session()
        assert ready_builder.is_built is False


class TestMailSession:
    """MailSession behaviour on its own."""

    def test_frozen(self):
        session = MailSession(host="smtp.example.com")
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.host = "other"

    def test_properties_read_only(self):
        session = MailSession(host="smtp.example.com")
        with pytest.raises(TypeError):
            session.properties["mail.smtp.host"] = "other"

    def test_empty_host_rejected(self):
        with pytest.raises(MissingHostNameError):
            MailSession(host="")

    def test_get_property_default(self):
        session = MailSession(host="smtp.example.com")
        assert session.get_property("mail.smtp.from") is None
        assert session.get_property("mail.smtp.from", "x") == "x"

    def test_ssl_context_plain(self):
        assert MailSession(host="smtp.example.com").create_ssl_context() is None

    def test_ssl_context_without_identity_check(self):
        context = MailSession(host="smtp.example.com", ssl_on_connect=True).create_ssl_context()
        assert isinstance(context, ssl.SSLContext)
        assert context.check_hostname is False

    def test_ssl_context_for_required_starttls(self):
        session = MailSession(host="smtp.example.com", start_tls_required=True)
        assert isinstance(session.create_ssl_context(), ssl.SSLContext)

    def test_ssl_context_with_identity_check(self):
        session = MailSession(
            host="smtp.example.com",
            start_tls_enabled=True,
            ssl_check_server_identity=True,
        )
        assert session.create_ssl_context().check_hostname is True

    def test_from_settings(self):
        settings = MailSettings(
            hostname="smtp.example.com",
            ssl_on_connect=True,
            username="user",
            password="secret",
        )
        session = MailSession.from_settings(settings)
        assert session.host == "smtp.example.com"
        assert session.port == 465
        assert session.socket_factory == SSL_SOCKET_FACTORY
        assert session.requires_auth

    def test_from_settings_without_host(self):
        with pytest.raises(MissingHostNameError):
            MailSession.from_settings(MailSettings())
