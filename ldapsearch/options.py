"""
LDAP search options and configuration.

This module holds the enumerations used throughout the package and the
:py:class:`SearchConfiguration` dataclass that describes one search.  It is
also the only place where loosely-typed input parameters are translated into
those types: :py:meth:`SearchConfiguration.from_parameters` is the boundary
decode step, and everything downstream works with enums and integers.
"""

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ldapsearch import ldap

logger = logging.getLogger(__name__)

# -----------------------
# Parameter names
# -----------------------

HOST_PARAMETER = "host"
PORT_PARAMETER = "port"
PROTOCOL_PARAMETER = "protocol"
USERNAME_PARAMETER = "username"
PASSWORD_PARAMETER = "password"
CERTIFICATE_PATH_PARAMETER = "certificatePath"
BASE_OBJECT_PARAMETER = "baseObject"
SCOPE_PARAMETER = "scope"
FILTER_PARAMETER = "filter"
ATTRIBUTES_PARAMETER = "attributes"
SIZE_LIMIT_PARAMETER = "sizeLimit"
PAGE_SIZE_PARAMETER = "pageSize"
TIME_LIMIT_PARAMETER = "timeLimit"
REFERRAL_HANDLING_PARAMETER = "referralHandling"
DEREF_ALIASES_PARAMETER = "derefAliases"

# Absent numeric parameters decode to these so that they always fail the range
# checks in :py:mod:`ldapsearch.validators` instead of silently defaulting.
INT_MIN = -(2**31)
LONG_MIN = -(2**63)

# python-ldap passes size and time limits to libldap as C ints; larger values
# are clamped to this.
INT_MAX = 2**31 - 1

DEFAULT_PORT = 389


# -----------------------
# Enumerations
# -----------------------


class LdapProtocol(Enum):
    """
    How the transport to the directory server is secured.

    The values are the external names accepted in the ``protocol`` parameter.
    """

    #: Plain ``ldap://``, no encryption
    PLAIN = "LDAP"
    #: ``ldaps://``: the transport is SSL-wrapped from the start
    ENCRYPTED = "LDAPS"
    #: ``ldap://`` upgraded in-band with StartTLS before binding
    NEGOTIATED = "TLS"

    @classmethod
    def from_string(cls, value: str | None) -> "LdapProtocol":
        """
        Decode a ``protocol`` parameter.  Matching is case-insensitive; a
        missing or unknown name selects :py:attr:`ENCRYPTED`.
        """
        if value is not None:
            name = value.upper()
            for protocol in cls:
                if protocol.value == name:
                    return protocol
        return cls.ENCRYPTED

    @property
    def scheme(self) -> str:
        """
        The LDAP URL scheme for this protocol.
        """
        if self is LdapProtocol.ENCRYPTED:
            return "ldaps"
        return "ldap"


class LdapScope(Enum):
    """
    How deep a search traverses from its base object.

    The values are the external names accepted in the ``scope`` parameter.
    """

    #: The base object only
    OBJECT = "BASE"
    #: The immediate children of the base object
    ONE_LEVEL = "ONELEVEL"
    #: The base object and its whole subtree
    SUBTREE = "SUBTREE"

    @classmethod
    def from_string(cls, value: str | None) -> "LdapScope":
        """
        Decode a ``scope`` parameter.  Matching is case-insensitive; a missing
        or unknown name selects :py:attr:`ONE_LEVEL`.
        """
        if value is not None:
            name = value.upper()
            for scope in cls:
                if scope.value == name:
                    return scope
        return cls.ONE_LEVEL

    @property
    def ldap_scope(self) -> int:
        return {
            LdapScope.OBJECT: ldap.SCOPE_BASE,  # type: ignore[attr-defined]
            LdapScope.ONE_LEVEL: ldap.SCOPE_ONELEVEL,  # type: ignore[attr-defined]
            LdapScope.SUBTREE: ldap.SCOPE_SUBTREE,  # type: ignore[attr-defined]
        }[self]


class LdapDereferencingAlias(Enum):
    """
    Whether directory aliases are followed during a search.
    """

    NEVER = "never"
    SEARCHING = "searching"
    FINDING = "finding"
    ALWAYS = "always"

    @classmethod
    def from_string(cls, value: str | None) -> "LdapDereferencingAlias":
        """
        Decode a ``derefAliases`` parameter.  Matching is case-insensitive; a
        missing, empty or unknown name selects :py:attr:`ALWAYS`.  Unknown
        names are reported by validation, which looks at the raw input.
        """
        if value:
            try:
                return cls[value.upper()]
            except KeyError:
                pass
        return cls.ALWAYS

    @classmethod
    def is_valid_name(cls, value: str) -> bool:
        """
        Return ``True`` if ``value`` is exactly the name of one of our members.
        This check is case-sensitive.
        """
        return value in cls.__members__

    @property
    def ldap_deref(self) -> int:
        return {
            LdapDereferencingAlias.NEVER: ldap.DEREF_NEVER,  # type: ignore[attr-defined]
            LdapDereferencingAlias.SEARCHING: ldap.DEREF_SEARCHING,  # type: ignore[attr-defined]
            LdapDereferencingAlias.FINDING: ldap.DEREF_FINDING,  # type: ignore[attr-defined]
            LdapDereferencingAlias.ALWAYS: ldap.DEREF_ALWAYS,  # type: ignore[attr-defined]
        }[self]


class ReferralHandling(Enum):
    """
    What to do when the server answers with a referral.
    """

    IGNORE = "ignore"
    FOLLOW = "follow"

    @property
    def ldap_referrals(self) -> int:
        """
        The value to set for ``ldap.OPT_REFERRALS``.
        """
        return 1 if self is ReferralHandling.FOLLOW else 0


# -----------------------
# Decoding helpers
# -----------------------


def parse_attributes(value: str | Iterable[str] | None) -> list[str] | None:
    """
    Parse the ``attributes`` parameter into an ordered list of attribute names.

    A string is split on commas and each name is trimmed.  An already split
    list is trimmed the same way, and blank names in it are dropped.

    Args:
        value: A comma separated string, a list of names, or ``None``.

    Returns:
        The attribute names, or ``None`` if the search should return all
        attributes.

    """
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        return [name.strip() for name in value.split(",")]
    names = [str(name).strip() for name in value]
    names = [name for name in names if name]
    return names or None


def coerce_int(value: Any, sentinel: int, name: str) -> int:
    """
    Decode a numeric parameter.

    Args:
        value: The raw parameter value.
        sentinel: What to return when the value is missing or unusable.
        name: The parameter name, for logging.

    Returns:
        ``value`` as an ``int``, or ``sentinel``.

    """
    if value is None:
        return sentinel
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(
            "ldapsearch.options.not_an_integer parameter=%s value=%r", name, value
        )
        return sentinel


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def clamp_limit(value: int) -> int:
    """
    Narrow a validated, non-negative limit to what python-ldap accepts.
    """
    return min(value, INT_MAX)


# -----------------------
# SearchConfiguration
# -----------------------


@dataclass(frozen=True)
class SearchConfiguration:
    """
    Everything needed to run one search against one directory server.

    Instances are immutable: validation only reads them, and
    :py:meth:`replace` returns a modified copy.  The defaults match what an
    unconfigured connector starts out with, so a bare
    ``SearchConfiguration()`` fails validation for host, base object, filter
    and protocol.

    Build one from raw input parameters with :py:meth:`from_parameters`.
    """

    #: The hostname of the directory server
    host: str | None = None
    #: The TCP port of the directory server
    port: int = DEFAULT_PORT
    #: How the transport is secured
    protocol: LdapProtocol | None = None
    #: The DN (or other principal) to bind as.  ``None`` for an anonymous bind.
    username: str | None = None
    #: The password for :py:attr:`username`
    password: str | None = None
    #: Path to a CA certificate file used to verify the server certificate
    certificate_path: str | None = None
    #: The DN the search starts from
    base_object: str | None = None
    #: How deep the search goes below :py:attr:`base_object`
    scope: LdapScope | None = LdapScope.OBJECT
    #: The LDAP search filter, e.g. ``(objectClass=person)``
    filter: str | None = None
    #: The attributes to return.  ``None`` returns all user attributes.
    attributes: list[str] | None = None
    #: The maximum number of entries to return.  0 means no limit.
    size_limit: int = 0
    #: The page size for a paged search.  0 or less disables paging.
    page_size: int = 0
    #: The server side time limit for the search in seconds.  0 means no limit.
    time_limit: int = 0
    #: ``ignore`` or ``follow``, exactly as supplied
    referral_handling: str | None = ReferralHandling.IGNORE.value
    #: The alias dereferencing policy
    deref_aliases: LdapDereferencingAlias = LdapDereferencingAlias.ALWAYS
    #: The ``derefAliases`` parameter exactly as supplied; only validation
    #: looks at this
    deref_aliases_input: str | None = None

    @classmethod
    def from_parameters(cls, parameters: Mapping[str, Any]) -> "SearchConfiguration":
        """
        Decode a configuration from a loosely-typed parameter mapping.

        String parameters that are missing stay ``None``; ``protocol`` and
        ``scope`` fall back to :py:attr:`LdapProtocol.ENCRYPTED` and
        :py:attr:`LdapScope.ONE_LEVEL`; missing numeric parameters become
        out-of-range sentinels so that validation rejects them.

        Args:
            parameters: A mapping of parameter name to value.

        Returns:
            The decoded configuration.  It has not been validated yet.

        """
        deref_input = _as_str(parameters.get(DEREF_ALIASES_PARAMETER))
        return cls(
            host=_as_str(parameters.get(HOST_PARAMETER)),
            port=coerce_int(parameters.get(PORT_PARAMETER), INT_MIN, PORT_PARAMETER),
            protocol=LdapProtocol.from_string(
                _as_str(parameters.get(PROTOCOL_PARAMETER))
            ),
            username=_as_str(parameters.get(USERNAME_PARAMETER)),
            password=_as_str(parameters.get(PASSWORD_PARAMETER)),
            certificate_path=_as_str(parameters.get(CERTIFICATE_PATH_PARAMETER)),
            base_object=_as_str(parameters.get(BASE_OBJECT_PARAMETER)),
            scope=LdapScope.from_string(_as_str(parameters.get(SCOPE_PARAMETER))),
            filter=_as_str(parameters.get(FILTER_PARAMETER)),
            attributes=parse_attributes(parameters.get(ATTRIBUTES_PARAMETER)),
            size_limit=coerce_int(
                parameters.get(SIZE_LIMIT_PARAMETER), LONG_MIN, SIZE_LIMIT_PARAMETER
            ),
            page_size=coerce_int(
                parameters.get(PAGE_SIZE_PARAMETER), LONG_MIN, PAGE_SIZE_PARAMETER
            ),
            time_limit=coerce_int(
                parameters.get(TIME_LIMIT_PARAMETER), INT_MIN, TIME_LIMIT_PARAMETER
            ),
            referral_handling=_as_str(parameters.get(REFERRAL_HANDLING_PARAMETER)),
            deref_aliases=LdapDereferencingAlias.from_string(deref_input),
            deref_aliases_input=deref_input,
        )

    def replace(self, **changes: Any) -> "SearchConfiguration":
        """
        Return a copy of this configuration with ``changes`` applied.
        """
        return dataclasses.replace(self, **changes)

    @property
    def has_credentials(self) -> bool:
        """
        ``True`` if we should do a simple bind with a username and password,
        ``False`` for an anonymous bind.
        """
        return bool(self.username) and bool(self.password)

    @property
    def uri(self) -> str:
        """
        The LDAP URL of the directory server, e.g. ``ldaps://ldap.example.com:636``.
        """
        protocol = self.protocol or LdapProtocol.ENCRYPTED
        return f"{protocol.scheme}://{self.host}:{self.port}"

    @property
    def referral_policy(self) -> ReferralHandling:
        """
        :py:attr:`referral_handling` as a :py:class:`ReferralHandling`.

        Raises:
            ValueError: :py:attr:`referral_handling` is not exactly ``ignore``
                or ``follow``.  Validation rejects such configurations first.

        """
        return ReferralHandling(self.referral_handling)

    @property
    def paged(self) -> bool:
        return self.page_size > 0
