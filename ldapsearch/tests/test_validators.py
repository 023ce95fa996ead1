# type: ignore
"""
Tests for SearchConfiguration validation.
"""

import tempfile
import unittest

from ldapsearch.exceptions import InvalidDereferencingAliasError, ValidationError
from ldapsearch.options import LdapProtocol, SearchConfiguration
from ldapsearch.validators import validate, validate_configuration


def basic_settings(**kwargs) -> SearchConfiguration:
    config = SearchConfiguration(
        host="localhost",
        protocol=LdapProtocol.PLAIN,
        base_object="ou=people,dc=example,dc=org",
        filter="(cn=*o*)",
    )
    return config.replace(**kwargs)


class TestValidateMandatoryParameters(unittest.TestCase):
    def test_empty_configuration_reports_all_missing_fields(self):
        errors = validate(SearchConfiguration())
        self.assertEqual(
            errors,
            [
                "host cannot be empty!",
                "baseObject cannot be empty!",
                "filter cannot be empty!",
                "protocol cannot be null",
            ],
        )

    def test_validation_error_carries_every_message(self):
        with self.assertRaises(ValidationError) as cm:
            validate_configuration(SearchConfiguration())
        self.assertEqual(len(cm.exception.errors), 4)
        for message in (
            "host cannot be empty!",
            "baseObject cannot be empty!",
            "filter cannot be empty!",
            "protocol cannot be null",
        ):
            self.assertIn(message, str(cm.exception))

    def test_empty_parameter_mapping(self):
        errors = validate(SearchConfiguration.from_parameters({}))
        self.assertIn("host cannot be empty!", errors)
        self.assertIn("baseObject cannot be empty!", errors)
        self.assertIn("filter cannot be empty!", errors)
        self.assertIn("port cannot be less than 0!", errors)
        self.assertIn("sizeLimit cannot be null or negative", errors)
        self.assertIn("timeLimit cannot be null or negative", errors)
        self.assertIn("referralHandling is null!", errors)
        # protocol and scope fall back to defaults when decoded
        self.assertNotIn("protocol cannot be null", errors)
        self.assertNotIn("scope cannot be null", errors)

    def test_valid_inputs(self):
        self.assertEqual(validate(basic_settings()), [])
        validate_configuration(basic_settings())

    def test_validation_does_not_modify_configuration(self):
        config = SearchConfiguration()
        before = config.replace()
        validate(config)
        self.assertEqual(config, before)


class TestValidateHostBaseFilter(unittest.TestCase):
    def test_none_host(self):
        self.assertEqual(validate(basic_settings(host=None)), ["host cannot be empty!"])

    def test_empty_host(self):
        self.assertEqual(validate(basic_settings(host="")), ["host cannot be empty!"])

    def test_none_base_object(self):
        self.assertEqual(
            validate(basic_settings(base_object=None)), ["baseObject cannot be empty!"]
        )

    def test_none_filter(self):
        self.assertEqual(validate(basic_settings(filter=None)), ["filter cannot be empty!"])


class TestValidateCredentials(unittest.TestCase):
    def test_password_without_username(self):
        errors = validate(basic_settings(username=None, password="What I want"))
        self.assertEqual(errors, ["username cannot be empty!"])

    def test_username_without_password(self):
        errors = validate(basic_settings(username="What I want", password=None))
        self.assertEqual(errors, ["password cannot be empty!"])

    def test_username_with_empty_password(self):
        errors = validate(basic_settings(username="cn=admin", password=""))
        self.assertEqual(errors, ["password cannot be empty!"])

    def test_username_and_password(self):
        self.assertEqual(validate(basic_settings(username="What I want", password="pwd")), [])

    def test_anonymous(self):
        self.assertEqual(validate(basic_settings(username=None, password=None)), [])
        self.assertEqual(validate(basic_settings(username="", password="")), [])


class TestValidatePort(unittest.TestCase):
    def test_less_than_range(self):
        self.assertEqual(validate(basic_settings(port=-1)), ["port cannot be less than 0!"])

    def test_greater_than_range(self):
        self.assertEqual(
            validate(basic_settings(port=65536)), ["port cannot be greater than 65535!"]
        )

    def test_boundaries(self):
        self.assertEqual(validate(basic_settings(port=0)), [])
        self.assertEqual(validate(basic_settings(port=65535)), [])

    def test_missing_port(self):
        config = SearchConfiguration.from_parameters(
            {
                "host": "localhost",
                "baseObject": "dc=example,dc=org",
                "filter": "(cn=*)",
                "sizeLimit": 0,
                "timeLimit": 0,
                "referralHandling": "ignore",
            }
        )
        self.assertEqual(validate(config), ["port cannot be less than 0!"])


class TestValidateProtocolAndScope(unittest.TestCase):
    def test_none_protocol(self):
        self.assertEqual(validate(basic_settings(protocol=None)), ["protocol cannot be null"])

    def test_unknown_protocol(self):
        self.assertEqual(validate(basic_settings(protocol="HTTP")), ["Unknown protocol"])

    def test_none_scope(self):
        self.assertEqual(validate(basic_settings(scope=None)), ["scope cannot be null"])

    def test_unknown_scope(self):
        self.assertEqual(validate(basic_settings(scope="ALLTREE")), ["Unknown scope"])


class TestValidateCertificatePath(unittest.TestCase):
    def test_missing_file(self):
        errors = validate(basic_settings(certificate_path="/path/to/nowhere/ca.crt"))
        self.assertEqual(errors, ["Certificate path does not refer to a real file!"])

    def test_existing_file(self):
        with tempfile.NamedTemporaryFile(suffix=".crt") as ca_file:
            self.assertEqual(validate(basic_settings(certificate_path=ca_file.name)), [])


class TestValidateLimits(unittest.TestCase):
    def test_none_size_limit(self):
        self.assertEqual(
            validate(basic_settings(size_limit=None)),
            ["sizeLimit cannot be null or negative"],
        )

    def test_negative_size_limit(self):
        self.assertEqual(
            validate(basic_settings(size_limit=-1)),
            ["sizeLimit cannot be null or negative"],
        )

    def test_negative_time_limit(self):
        self.assertEqual(
            validate(basic_settings(time_limit=-4)),
            ["timeLimit cannot be null or negative"],
        )

    def test_none_time_limit(self):
        self.assertEqual(
            validate(basic_settings(time_limit=None)),
            ["timeLimit cannot be null or negative"],
        )

    def test_negative_page_size_is_allowed(self):
        self.assertEqual(validate(basic_settings(page_size=-1)), [])


class TestValidateReferralHandling(unittest.TestCase):
    def test_none(self):
        self.assertEqual(
            validate(basic_settings(referral_handling=None)), ["referralHandling is null!"]
        )

    def test_bad_values(self):
        for value in ("always", "IGNORE", "FOLLOW", "Follow"):
            with self.subTest(value=value):
                self.assertEqual(
                    validate(basic_settings(referral_handling=value)),
                    ["referralHandling must be either ignore or follow!"],
                )

    def test_good_values(self):
        self.assertEqual(validate(basic_settings(referral_handling="ignore")), [])
        self.assertEqual(validate(basic_settings(referral_handling="follow")), [])


class TestValidateDereferencingAlias(unittest.TestCase):
    def test_exact_name_passes(self):
        for value in ("NEVER", "SEARCHING", "FINDING", "ALWAYS"):
            with self.subTest(value=value):
                validate_configuration(basic_settings(deref_aliases_input=value))

    def test_empty_input_passes(self):
        validate_configuration(basic_settings(deref_aliases_input=""))
        validate_configuration(basic_settings(deref_aliases_input=None))

    def test_unknown_name_raises_distinct_error(self):
        with self.assertRaises(InvalidDereferencingAliasError) as cm:
            validate_configuration(basic_settings(deref_aliases_input="sometimes"))
        self.assertEqual(cm.exception.value, "sometimes")
        self.assertIn("sometimes is not a valid dereferencing alias.", str(cm.exception))

    def test_match_is_case_sensitive(self):
        with self.assertRaises(InvalidDereferencingAliasError):
            validate_configuration(basic_settings(deref_aliases_input="never"))

    def test_other_violations_are_kept(self):
        with self.assertRaises(InvalidDereferencingAliasError) as cm:
            validate_configuration(basic_settings(host="", deref_aliases_input="bogus"))
        self.assertEqual(
            cm.exception.errors,
            ["host cannot be empty!", "bogus is not a valid dereferencing alias."],
        )
        self.assertIsInstance(cm.exception, ValidationError)
