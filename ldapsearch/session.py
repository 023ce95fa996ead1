"""
Directory session setup and teardown.

:py:class:`DirectorySession` owns one python-ldap connection for the length of
one search.  It knows the three ways of securing the transport and, crucially,
when credentials may be sent for each of them:

* :py:attr:`~ldapsearch.options.LdapProtocol.PLAIN`: ``ldap://``, bind right
  away (simple bind with credentials, anonymous otherwise).
* :py:attr:`~ldapsearch.options.LdapProtocol.ENCRYPTED`: ``ldaps://``, the
  socket is SSL-wrapped from the start, so bind right away.
* :py:attr:`~ldapsearch.options.LdapProtocol.NEGOTIATED`: ``ldap://``, then
  StartTLS.  We only bind after StartTLS has completed, otherwise the
  password would cross the wire in clear text.
"""

import logging
from types import TracebackType

from ldapsearch import ldap

from .exceptions import SessionError
from .options import LdapProtocol, SearchConfiguration, clamp_limit

logger = logging.getLogger(__name__)


class DirectorySession:
    """
    A single, short-lived connection to a directory server.

    Use it as a context manager; the connection is closed on the way out no
    matter what happened inside the block::

        with DirectorySession(config) as connection:
            connection.search_ext(...)

    Args:
        config: A validated search configuration.

    """

    def __init__(self, config: SearchConfiguration) -> None:
        self.config = config
        #: The python-ldap connection, once :py:meth:`open` has been called
        self._connection: ldap.ldapobject.LDAPObject | None = None  # type: ignore[name-defined]
        #: ``True`` while StartTLS is in effect on :py:attr:`_connection`
        self.tls_started: bool = False
        self._closed: bool = False

    @property
    def connection(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        """
        The python-ldap connection object.

        Raises:
            SessionError: the session has not been opened, or has been closed.

        """
        if self._connection is None or self._closed:
            msg = "The directory session is not open"
            raise SessionError(msg)
        return self._connection

    def _set_options(self, connection: ldap.ldapobject.LDAPObject) -> None:  # type: ignore[name-defined]
        """
        Apply the per-connection options from our configuration.

        Args:
            connection: The freshly initialized connection.

        """
        config = self.config
        connection.set_option(ldap.OPT_PROTOCOL_VERSION, ldap.VERSION3)  # type: ignore[attr-defined]
        connection.set_option(
            ldap.OPT_REFERRALS,  # type: ignore[attr-defined]
            config.referral_policy.ldap_referrals,
        )
        connection.set_option(ldap.OPT_DEREF, config.deref_aliases.ldap_deref)  # type: ignore[attr-defined]
        if config.time_limit > 0:
            connection.set_option(ldap.OPT_TIMELIMIT, clamp_limit(config.time_limit))  # type: ignore[attr-defined]
        if config.certificate_path:
            connection.set_option(
                ldap.OPT_X_TLS_REQUIRE_CERT,  # type: ignore[attr-defined]
                ldap.OPT_X_TLS_DEMAND,  # type: ignore[attr-defined]
            )
            connection.set_option(ldap.OPT_X_TLS_CACERTFILE, config.certificate_path)  # type: ignore[attr-defined]
            # Make the TLS options above take effect on this connection
            connection.set_option(ldap.OPT_X_TLS_NEWCTX, 0)  # type: ignore[attr-defined]

    def _bind(self, connection: ldap.ldapobject.LDAPObject) -> None:  # type: ignore[name-defined]
        if self.config.has_credentials:
            logger.debug(
                "ldapsearch.session.bind.simple uri=%s user=%s",
                self.config.uri,
                self.config.username,
            )
            connection.simple_bind_s(self.config.username, self.config.password)
        else:
            logger.debug("ldapsearch.session.bind.anonymous uri=%s", self.config.uri)
            connection.simple_bind_s()

    def open(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        """
        Connect, secure the transport as configured, and bind.

        Raises:
            SessionError: connecting, StartTLS or binding failed.

        Returns:
            The bound python-ldap connection.

        """
        config = self.config
        logger.info(
            "ldapsearch.session.open uri=%s protocol=%s",
            config.uri,
            config.protocol.name if config.protocol else None,
        )
        try:
            self._connection = ldap.initialize(config.uri)  # type: ignore[attr-defined]
            self._set_options(self._connection)
            if config.protocol is LdapProtocol.NEGOTIATED:
                self._connection.start_tls_s()
                self.tls_started = True
                logger.debug("ldapsearch.session.starttls.ok uri=%s", config.uri)
            self._bind(self._connection)
        except (ldap.LDAPError, OSError) as exc:  # type: ignore[attr-defined]
            logger.error("ldapsearch.session.open.failed uri=%s error=%s", config.uri, exc)
            msg = f"Could not open a directory session to {config.uri}: {exc}"
            raise SessionError(msg) from exc
        return self._connection

    def close(self) -> None:
        """
        Release the connection.  Safe to call more than once; only the first
        call does anything.

        Errors while closing are logged and swallowed so that they never hide
        the outcome of the search itself.
        """
        if self._closed:
            return
        self._closed = True
        if self.tls_started:
            # python-ldap has no separate StartTLS handle: the TLS layer goes
            # away with the connection below.
            logger.debug("ldapsearch.session.starttls.close uri=%s", self.config.uri)
            self.tls_started = False
        if self._connection is None:
            return
        try:
            self._connection.unbind_s()
        except Exception:
            logger.warning(
                "ldapsearch.session.close.failed uri=%s", self.config.uri, exc_info=True
            )
        else:
            logger.debug("ldapsearch.session.close uri=%s", self.config.uri)

    def __enter__(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        try:
            return self.open()
        except BaseException:
            self.close()
            raise

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
