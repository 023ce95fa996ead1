"""
Exceptions raised by the LDAP search connector.

There are two kinds of failure:

* :py:class:`ValidationError` -- the configuration is incomplete or
  inconsistent.  Raised before any network I/O happens, and always carries
  every problem found, not just the first one.
* :py:class:`SessionError` -- something went wrong talking to the directory
  server (connect, StartTLS, bind, search or reading results).  It wraps the
  underlying python-ldap exception.
"""


class LdapSearchError(Exception):
    """
    Base class for all errors raised by :py:mod:`ldapsearch`.
    """


class ValidationError(LdapSearchError):
    """
    Raised when a :py:class:`~ldapsearch.options.SearchConfiguration` fails
    validation.

    Args:
        errors: The complete list of human-readable violation messages.

    """

    def __init__(self, errors: list[str]) -> None:
        #: Every violation found, in the order the rules were evaluated
        self.errors: list[str] = list(errors)
        super().__init__("\n".join(self.errors))


class InvalidDereferencingAliasError(ValidationError):
    """
    Raised instead of a plain :py:class:`ValidationError` when the
    ``derefAliases`` input does not name a known dereferencing policy.

    Args:
        value: The rejected ``derefAliases`` input.
        errors: The complete list of violation messages, including the one for
            ``value``.

    """

    def __init__(self, value: str, errors: list[str]) -> None:
        #: The rejected input
        self.value = value
        super().__init__(errors)


class SessionError(LdapSearchError):
    """
    Raised when opening the directory session or running the search fails.

    The original exception is available both as ``__cause__`` and as
    :py:attr:`cause`.
    """

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__
