"""
Validation of a :py:class:`~ldapsearch.options.SearchConfiguration`.

Validation is a pure function of the configuration: it does no I/O apart from
checking that a configured certificate file exists, and it never modifies the
configuration.  Every rule is evaluated, so the caller gets all problems at
once.
"""

from pathlib import Path

from .exceptions import InvalidDereferencingAliasError, ValidationError
from .options import LdapDereferencingAlias, LdapProtocol, LdapScope, SearchConfiguration

MAX_PORT = 65535


def _is_empty(value: str | None) -> bool:
    return value is None or len(value) == 0


def _validate_credentials(config: SearchConfiguration) -> list[str]:
    if _is_empty(config.username):
        if not _is_empty(config.password):
            return ["username cannot be empty!"]
    elif _is_empty(config.password):
        return ["password cannot be empty!"]
    return []


def _validate_port(config: SearchConfiguration) -> list[str]:
    if config.port is None or config.port < 0:
        return ["port cannot be less than 0!"]
    if config.port > MAX_PORT:
        return [f"port cannot be greater than {MAX_PORT}!"]
    return []


def _validate_protocol(config: SearchConfiguration) -> list[str]:
    if config.protocol is None:
        return ["protocol cannot be null"]
    if not isinstance(config.protocol, LdapProtocol):
        return ["Unknown protocol"]
    return []


def _validate_scope(config: SearchConfiguration) -> list[str]:
    if config.scope is None:
        return ["scope cannot be null"]
    if not isinstance(config.scope, LdapScope):
        return ["Unknown scope"]
    return []


def _validate_certificate_path(config: SearchConfiguration) -> list[str]:
    if config.certificate_path is not None and not Path(config.certificate_path).is_file():
        return ["Certificate path does not refer to a real file!"]
    return []


def _validate_referral_handling(config: SearchConfiguration) -> list[str]:
    # Unlike protocol and scope, this comparison is case-sensitive.
    if config.referral_handling is None:
        return ["referralHandling is null!"]
    if config.referral_handling not in ("ignore", "follow"):
        return ["referralHandling must be either ignore or follow!"]
    return []


def _deref_aliases_error(config: SearchConfiguration) -> str | None:
    value = config.deref_aliases_input
    if value and not LdapDereferencingAlias.is_valid_name(value):
        return f"{value} is not a valid dereferencing alias."
    return None


def validate(config: SearchConfiguration) -> list[str]:
    """
    Check ``config`` for completeness and consistency.

    Args:
        config: The configuration to check.

    Returns:
        A list of human-readable violation messages.  An empty list means the
        configuration is valid.

    """
    errors: list[str] = []
    if _is_empty(config.host):
        errors.append("host cannot be empty!")
    errors.extend(_validate_credentials(config))
    if _is_empty(config.base_object):
        errors.append("baseObject cannot be empty!")
    if _is_empty(config.filter):
        errors.append("filter cannot be empty!")
    errors.extend(_validate_port(config))
    errors.extend(_validate_protocol(config))
    errors.extend(_validate_scope(config))
    errors.extend(_validate_certificate_path(config))
    if config.size_limit is None or config.size_limit < 0:
        errors.append("sizeLimit cannot be null or negative")
    if config.time_limit is None or config.time_limit < 0:
        errors.append("timeLimit cannot be null or negative")
    errors.extend(_validate_referral_handling(config))
    deref_error = _deref_aliases_error(config)
    if deref_error:
        errors.append(deref_error)
    return errors


def validate_configuration(config: SearchConfiguration) -> None:
    """
    Validate ``config`` and raise if anything is wrong.

    Args:
        config: The configuration to check.

    Raises:
        InvalidDereferencingAliasError: ``derefAliases`` names an unknown
            policy.  The error still carries every other violation found.
        ValidationError: any other rule failed.

    """
    errors = validate(config)
    if not errors:
        return
    if _deref_aliases_error(config):
        raise InvalidDereferencingAliasError(
            value=config.deref_aliases_input or "", errors=errors
        )
    raise ValidationError(errors)
