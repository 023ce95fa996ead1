"""
LDAP search execution.

This module runs one search described by a validated
:py:class:`~ldapsearch.options.SearchConfiguration` and turns the raw
python-ldap results into a :py:data:`~ldapsearch.typing.SearchResult`.

A search is either:

* non-paged: one ``search_ext`` call.  We also stop reading after
  ``size_limit`` entries ourselves, because the size limit we send to the
  server is only honored if the server cooperates.
* paged: repeated ``search_ext`` calls with a
  :py:class:`ldap.controls.SimplePagedResultsControl`, each one carrying the
  cookie from the previous page, until the server hands back an empty cookie
  or stops the search at the size limit.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from ldap.controls import SimplePagedResultsControl

from ldapsearch import ldap

from .exceptions import SessionError
from .models import LdapAttribute
from .options import (
    LdapDereferencingAlias,
    LdapScope,
    SearchConfiguration,
    clamp_limit,
)
from .session import DirectorySession
from .typing import Entry, LDAPData, SearchResult

logger = logging.getLogger(__name__)


# -----------------------
# Attribute extraction
# -----------------------


def decode_value(value: Any) -> str:
    """
    Decode one attribute value to text.  Binary values are read as UTF-8, with
    malformed bytes replaced rather than raising.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def extract_entry(attrs: Mapping[str, Iterable[Any]]) -> Entry:
    """
    Flatten the attributes of one raw entry into ``(name, value)`` pairs.

    Attributes and their values keep the order the server returned them in.
    A multi-valued attribute yields one :py:class:`LdapAttribute` per value.

    Args:
        attrs: The attribute dictionary of a python-ldap result entry.

    Returns:
        The entry's attribute values.  Empty if the server returned no
        attributes for this entry.

    """
    return [
        LdapAttribute(name, decode_value(value))
        for name, values in attrs.items()
        for value in values
    ]


# -----------------------
# Search plumbing
# -----------------------


@dataclass(frozen=True)
class SearchControls:
    """
    The per-search limits and selectors derived from a configuration.
    """

    #: Server side time limit in milliseconds; 0 means no limit
    time_limit_ms: int
    #: Maximum number of entries; 0 means no limit
    size_limit: int
    #: Attributes to return; ``None`` means all of them
    attributes: list[str] | None
    scope: LdapScope
    deref_aliases: LdapDereferencingAlias

    @classmethod
    def from_configuration(cls, config: SearchConfiguration) -> "SearchControls":
        return cls(
            time_limit_ms=config.time_limit * 1000,
            size_limit=clamp_limit(config.size_limit),
            attributes=config.attributes,
            scope=config.scope or LdapScope.ONE_LEVEL,
            deref_aliases=config.deref_aliases,
        )

    @property
    def timeout(self) -> float:
        """
        :py:attr:`time_limit_ms` in the form python-ldap's ``search_ext``
        wants: seconds, or -1 for no limit.
        """
        if self.time_limit_ms > 0:
            return self.time_limit_ms / 1000
        return -1


class SearchCursor:
    """
    A lazy iterator over the entries returned for one ``search_ext`` call.

    Results are read from the server one message at a time with
    ``result3(msgid, all=0)``.  Search references (which AD likes to append)
    are skipped.  Once the iterator is exhausted, the response controls of the
    final message are available as :py:attr:`response_controls`.

    A server that enforces the size limit we sent ends the search with
    ``sizeLimitExceeded``.  That ends iteration without an error and sets
    :py:attr:`size_limit_exceeded`; the entries read so far stand.

    Args:
        connection: The connection the search was sent on.
        msgid: The message id returned by ``search_ext``.

    """

    def __init__(self, connection: ldap.ldapobject.LDAPObject, msgid: int) -> None:  # type: ignore[name-defined]
        self.connection = connection
        self.msgid = msgid
        #: Set once we've read the final search result message
        self.done: bool = False
        #: Server controls attached to the final search result message
        self.response_controls: list[Any] = []
        #: Set if the server stopped the search at our size limit
        self.size_limit_exceeded: bool = False

    def __iter__(self) -> Iterator[LDAPData]:
        while not self.done:
            try:
                rtype, rdata, _, serverctrls = self.connection.result3(self.msgid, all=0)
            except ldap.SIZELIMIT_EXCEEDED:  # type: ignore[attr-defined]
                logger.info("ldapsearch.search.size_limit_exceeded msgid=%s", self.msgid)
                self.done = True
                self.size_limit_exceeded = True
                return
            if rtype == ldap.RES_SEARCH_RESULT:  # type: ignore[attr-defined]
                self.done = True
                self.response_controls = list(serverctrls or [])
            for dn, attrs in rdata or []:
                if isinstance(attrs, dict):
                    yield dn, attrs

    def abandon(self) -> None:
        """
        Tell the server we don't want the rest of the results.  Does nothing if
        we've already read everything.
        """
        if self.done:
            return
        self.done = True
        try:
            self.connection.abandon(self.msgid)
        except ldap.LDAPError:  # type: ignore[attr-defined]
            logger.warning(
                "ldapsearch.search.abandon.failed msgid=%s", self.msgid, exc_info=True
            )


def get_paged_controls(serverctrls: Iterable[Any]) -> list[Any]:
    """
    Pick the paged results controls out of the controls the server returned.
    The cookie we need for the next page lives on these.
    """
    return [
        c
        for c in serverctrls
        if c.controlType == SimplePagedResultsControl.controlType
    ]


# -----------------------
# SearchExecutor
# -----------------------


class SearchExecutor:
    """
    Runs one search, start to finish: open the session, search (paged or not),
    collect the entries, close the session.

    Args:
        config: A validated search configuration.

    """

    def __init__(self, config: SearchConfiguration) -> None:
        self.config = config
        self.controls = SearchControls.from_configuration(config)

    def execute(self) -> SearchResult:
        """
        Run the search.

        Raises:
            SessionError: the session could not be opened, or the search or
                reading its results failed.  No partial results are returned.

        Returns:
            Every non-empty matched entry, in the order the server returned
            them.

        """
        config = self.config
        logger.info(
            "ldapsearch.search.start base=%s filter=%s scope=%s page_size=%s size_limit=%s",
            config.base_object,
            config.filter,
            self.controls.scope.name,
            config.page_size,
            config.size_limit,
        )
        with DirectorySession(config) as connection:
            try:
                if config.paged:
                    results = self._paged_search(connection)
                else:
                    results = self._non_paged_search(connection)
            except (ldap.LDAPError, OSError) as exc:  # type: ignore[attr-defined]
                logger.error(
                    "ldapsearch.search.failed base=%s filter=%s error=%s",
                    config.base_object,
                    config.filter,
                    exc,
                )
                msg = f"Search of {config.base_object} failed: {exc}"
                raise SessionError(msg) from exc
        logger.info("ldapsearch.search.done entries=%d", len(results))
        return results

    def _search(
        self,
        connection: ldap.ldapobject.LDAPObject,  # type: ignore[name-defined]
        serverctrls: list[Any] | None = None,
    ) -> SearchCursor:
        """
        Send one search request and return a cursor over its results.
        """
        msgid = connection.search_ext(
            self.config.base_object,
            self.controls.scope.ldap_scope,
            self.config.filter,
            self.controls.attributes,
            serverctrls=serverctrls,
            timeout=self.controls.timeout,
            sizelimit=self.controls.size_limit,
        )
        return SearchCursor(connection, msgid)

    @staticmethod
    def _add_entry(results: SearchResult, attrs: Mapping[str, Iterable[Any]]) -> None:
        entry = extract_entry(attrs)
        # Entries the server returned no attributes for (usually because of
        # access controls) are not reported.
        if entry:
            results.append(entry)

    def _non_paged_search(self, connection: ldap.ldapobject.LDAPObject) -> SearchResult:  # type: ignore[name-defined]
        """
        Perform a single search, stopping after ``size_limit`` entries if a
        limit is set.

        Args:
            connection: A bound connection.

        Returns:
            The non-empty entries read.

        """
        limit = self.controls.size_limit
        results: SearchResult = []
        cursor = self._search(connection)
        for count, (_dn, attrs) in enumerate(cursor, start=1):
            self._add_entry(results, attrs)
            if 0 < limit <= count:
                cursor.abandon()
                break
        return results

    def _paged_search(self, connection: ldap.ldapobject.LDAPObject) -> SearchResult:  # type: ignore[name-defined]
        """
        Perform a paged search, following the server's cookie until it runs
        out of pages.

        Args:
            connection: A bound connection.

        Returns:
            The non-empty entries from every page, in page order.

        """
        page_size = clamp_limit(self.config.page_size)
        # The first request starts with an empty cookie and is not critical;
        # once the server has shown it supports paging, we insist on it.
        paging = SimplePagedResultsControl(False, size=page_size, cookie="")  # noqa: FBT003
        results: SearchResult = []
        page = 0
        while True:
            page += 1
            cursor = self._search(connection, serverctrls=[paging])
            for _dn, attrs in cursor:
                self._add_entry(results, attrs)
            paged_controls = get_paged_controls(cursor.response_controls)
            cookie = paged_controls[0].cookie if paged_controls else None
            logger.debug(
                "ldapsearch.search.page number=%d total=%d more=%s",
                page,
                len(results),
                bool(cookie),
            )
            if cursor.size_limit_exceeded or not cookie:
                break
            paging = SimplePagedResultsControl(True, size=page_size, cookie=cookie)  # noqa: FBT003
        return results
