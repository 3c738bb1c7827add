"""
Unit tests for controller input validation.
"""

import os
import sys
import unittest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from controller.validation import (
    MAX_POLL_INTERVAL,
    ValidationError,
    validate_positive_int,
    validate_register_request,
    validate_string,
    validate_update_request,
)


class TestValidateString(unittest.TestCase):
    """Test string validation."""

    def test_strips_whitespace(self):
        self.assertEqual(validate_string('  abc  ', 'name'), 'abc')

    def test_required(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_string(None, 'name')
        self.assertEqual(ctx.exception.field, 'name')

        with self.assertRaises(ValidationError):
            validate_string('   ', 'name')

    def test_optional(self):
        self.assertIsNone(validate_string(None, 'name', required=False))
        self.assertIsNone(validate_string('', 'name', required=False))

    def test_type(self):
        with self.assertRaises(ValidationError):
            validate_string(42, 'name')

    def test_max_length(self):
        with self.assertRaises(ValidationError):
            validate_string('x' * 11, 'name', max_len=10)

    def test_url_pattern(self):
        self.assertEqual(validate_string('https://example.com/x?y=1', 'url', pattern='url'),
                         'https://example.com/x?y=1')
        for bad in ('example.com', 'ftp://example.com', 'http://', 'http:// spaced'):
            with self.assertRaises(ValidationError, msg=bad):
                validate_string(bad, 'url', pattern='url')


class TestValidatePositiveInt(unittest.TestCase):
    """Test poll interval validation."""

    def test_valid(self):
        self.assertEqual(validate_positive_int(1, 'poll_interval'), 1)
        self.assertEqual(validate_positive_int(MAX_POLL_INTERVAL, 'poll_interval',
                                               max_value=MAX_POLL_INTERVAL), MAX_POLL_INTERVAL)

    def test_rejects_zero_negative_and_too_large(self):
        for value in (0, -1):
            with self.assertRaises(ValidationError):
                validate_positive_int(value, 'poll_interval')
        with self.assertRaises(ValidationError):
            validate_positive_int(MAX_POLL_INTERVAL + 1, 'poll_interval', max_value=MAX_POLL_INTERVAL)

    def test_rejects_non_integers(self):
        for value in (None, '5', 5.0, True):
            with self.assertRaises(ValidationError, msg=repr(value)):
                validate_positive_int(value, 'poll_interval')


class TestRequestValidation(unittest.TestCase):
    """Test request body validation."""

    def test_register_request(self):
        self.assertEqual(validate_register_request({'name': 'agent-a1B2c3'}), 'agent-a1B2c3')

        with self.assertRaises(ValidationError):
            validate_register_request(None)
        with self.assertRaises(ValidationError):
            validate_register_request({'name': 'has space'})

    def test_update_request(self):
        self.assertEqual(
            validate_update_request({'url': ' http://b ', 'poll_interval': 10}),
            ('http://b', 10)
        )

        with self.assertRaises(ValidationError):
            validate_update_request(['http://b', 10])


if __name__ == '__main__':
    unittest.main()
