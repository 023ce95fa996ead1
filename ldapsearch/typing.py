"""
LDAP search type definitions.

This module provides type aliases for the raw data python-ldap hands back and
for the structured results we build from it.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import LdapAttribute

#: A raw entry as returned by python-ldap: ``(dn, {attribute: [values]})``
LDAPData = tuple[str, dict[str, list[bytes]]]
#: One matched directory object, as an ordered list of name/value pairs
Entry = list["LdapAttribute"]
#: All matched objects, in the order the directory returned them
SearchResult = list[Entry]
