# This module re-exports python-ldap so that tests can patch
# ``ldapsearch.ldap.initialize``; python-ldap-faker patches the ``ldap`` name
# inside the modules listed in ``ldap_modules``.
import ldap
from ldap import *  # noqa: F403
from ldap import controls, ldapobject  # noqa: F401

__version__ = ldap.__version__
