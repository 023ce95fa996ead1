"""
The LDAP search connector.

:py:class:`LdapSearchConnector` is the entry point for callers that hold a
loosely-typed parameter mapping.  It runs three stages in order:

1. :py:meth:`LdapSearchConnector.set_input_parameters` decodes the mapping
   into a :py:class:`~ldapsearch.options.SearchConfiguration`.
2. :py:meth:`LdapSearchConnector.validate_input_parameters` rejects bad
   configurations before any network I/O.
3. :py:meth:`LdapSearchConnector.execute` runs the search.

:py:meth:`LdapSearchConnector.run` does all three and returns the outputs.
"""

import logging
from collections.abc import Mapping
from typing import Any

from .executor import SearchExecutor
from .options import (  # noqa: F401
    ATTRIBUTES_PARAMETER,
    BASE_OBJECT_PARAMETER,
    CERTIFICATE_PATH_PARAMETER,
    DEREF_ALIASES_PARAMETER,
    FILTER_PARAMETER,
    HOST_PARAMETER,
    PAGE_SIZE_PARAMETER,
    PASSWORD_PARAMETER,
    PORT_PARAMETER,
    PROTOCOL_PARAMETER,
    REFERRAL_HANDLING_PARAMETER,
    SCOPE_PARAMETER,
    SIZE_LIMIT_PARAMETER,
    TIME_LIMIT_PARAMETER,
    USERNAME_PARAMETER,
    SearchConfiguration,
)
from .typing import SearchResult
from .validators import validate_configuration

logger = logging.getLogger(__name__)

#: The name under which the search result is published
LDAP_ATTRIBUTE_LIST_OUTPUT = "ldapAttributeList"


class LdapSearchConnector:
    """
    Decode, validate and execute one LDAP search.

    A connector holds no connection between calls; each :py:meth:`execute`
    opens and closes its own session.

    Keyword Args:
        config: An already decoded configuration.  If omitted, call
            :py:meth:`set_input_parameters` before validating.

    """

    def __init__(self, config: SearchConfiguration | None = None) -> None:
        #: The configuration for the next search
        self.config: SearchConfiguration = config or SearchConfiguration()
        #: Published outputs, filled in by :py:meth:`execute`
        self.outputs: dict[str, Any] = {}

    def set_input_parameters(self, parameters: Mapping[str, Any]) -> None:
        """
        Decode ``parameters`` into our configuration.

        Args:
            parameters: A mapping of parameter name (``host``, ``port``,
                ``baseObject``, ...) to value.

        """
        self.config = SearchConfiguration.from_parameters(parameters)

    def validate_input_parameters(self) -> None:
        """
        Raises:
            ValidationError: listing every problem with our configuration.

        """
        validate_configuration(self.config)

    def execute(self) -> SearchResult:
        """
        Run the search with our configuration and publish the result under
        :py:data:`LDAP_ATTRIBUTE_LIST_OUTPUT`.

        Raises:
            SessionError: the search failed.

        Returns:
            The matched entries.

        """
        result = SearchExecutor(self.config).execute()
        self.outputs = {LDAP_ATTRIBUTE_LIST_OUTPUT: result}
        return result

    def run(self, parameters: Mapping[str, Any]) -> dict[str, Any]:
        """
        Decode ``parameters``, validate them, and run the search.

        Args:
            parameters: A mapping of parameter name to value.

        Raises:
            ValidationError: the parameters are invalid; nothing was sent to
                the server.
            SessionError: the search failed.

        Returns:
            The outputs mapping, ``{"ldapAttributeList": [...]}``.

        """
        self.set_input_parameters(parameters)
        self.validate_input_parameters()
        self.execute()
        return self.outputs


def search(parameters: Mapping[str, Any]) -> SearchResult:
    """
    Shortcut for ``LdapSearchConnector().run(parameters)["ldapAttributeList"]``.
    """
    return LdapSearchConnector().run(parameters)[LDAP_ATTRIBUTE_LIST_OUTPUT]
