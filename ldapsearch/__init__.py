from .connector import LDAP_ATTRIBUTE_LIST_OUTPUT, LdapSearchConnector, search
from .exceptions import (
    InvalidDereferencingAliasError,
    LdapSearchError,
    SessionError,
    ValidationError,
)
from .executor import SearchExecutor
from .models import LdapAttribute
from .options import (
    LdapDereferencingAlias,
    LdapProtocol,
    LdapScope,
    ReferralHandling,
    SearchConfiguration,
)
from .validators import validate, validate_configuration

__version__ = "1.0.0"

__all__ = [
    "LDAP_ATTRIBUTE_LIST_OUTPUT",
    "InvalidDereferencingAliasError",
    "LdapAttribute",
    "LdapDereferencingAlias",
    "LdapProtocol",
    "LdapScope",
    "LdapSearchConnector",
    "LdapSearchError",
    "ReferralHandling",
    "SearchConfiguration",
    "SearchExecutor",
    "SessionError",
    "ValidationError",
    "search",
    "validate",
    "validate_configuration",
]
