"""
Result values produced by an LDAP search.

A search result is a list of entries, and each entry is a list of
:py:class:`LdapAttribute` objects: one per attribute value, in the order the
directory server returned them.  A multi-valued attribute therefore produces
several :py:class:`LdapAttribute` objects sharing the same name.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LdapAttribute:
    """
    A single ``(name, value)`` pair from a matched directory entry.

    Args:
        name: The attribute name, as returned by the server.
        value: One value of that attribute, decoded to text.

    """

    #: The attribute name, e.g. ``cn`` or ``objectClass``
    name: str
    #: One value of the attribute
    value: str

    def __str__(self) -> str:
        return f"{self.name}={self.value}"

    def as_dict(self) -> dict[str, str]:
        """
        Return this attribute as a plain dictionary, suitable for JSON output.

        Returns:
            A dictionary with ``name`` and ``value`` keys.

        """
        return {"name": self.name, "value": self.value}
