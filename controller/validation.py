"""
Input Validation Module for the Controller API

Validates request bodies before they reach the configuration authority.
"""

import re
from typing import Any, Dict, Optional, Tuple


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(message)


# Validation patterns
PATTERNS = {
    # Agent name: printable, no whitespace, 1-100 chars
    'agent_name': re.compile(r'^[A-Za-z0-9][A-Za-z0-9_\-.:]{0,99}$'),

    # http(s) URL with a host part
    'url': re.compile(r'^https?://[^\s/$.?#][^\s]*$', re.IGNORECASE),
}

MAX_POLL_INTERVAL = 86400


def validate_string(value: Any, field_name: str, min_len: int = 1, max_len: int = 1000,
                    pattern: str = None, required: bool = True) -> Optional[str]:
    """
    Validate a string value.

    Args:
        value: Value to validate
        field_name: Name of the field (for error messages)
        min_len: Minimum length
        max_len: Maximum length
        pattern: Regex pattern name from PATTERNS dict
        required: Whether the field is required

    Returns:
        Validated (stripped) string or None

    Raises:
        ValidationError: If validation fails
    """
    if value is None:
        if required:
            raise ValidationError(f'{field_name} is required', field_name)
        return None

    if not isinstance(value, str):
        raise ValidationError(f'{field_name} must be a string', field_name)

    value = value.strip()

    if len(value) == 0:
        if required:
            raise ValidationError(f'{field_name} is required', field_name)
        return None

    if len(value) < min_len:
        raise ValidationError(f'{field_name} must be at least {min_len} characters', field_name)

    if len(value) > max_len:
        raise ValidationError(f'{field_name} must be at most {max_len} characters', field_name)

    if pattern and pattern in PATTERNS:
        if not PATTERNS[pattern].match(value):
            raise ValidationError(f'{field_name} has an invalid format', field_name)

    return value


def validate_positive_int(value: Any, field_name: str, max_value: int = None) -> int:
    """
    Validate a strictly positive integer.

    Booleans are rejected even though they are ints in Python.
    """
    if value is None:
        raise ValidationError(f'{field_name} is required', field_name)

    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'{field_name} must be an integer', field_name)

    if value <= 0:
        raise ValidationError(f'{field_name} must be greater than 0', field_name)

    if max_value is not None and value > max_value:
        raise ValidationError(f'{field_name} must be at most {max_value}', field_name)

    return value


def validate_register_request(data: Optional[Dict]) -> str:
    """
    Validate a POST /register body.

    Returns:
        The agent name
    """
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return validate_string(data.get('name'), 'name', max_len=100, pattern='agent_name')


def validate_update_request(data: Optional[Dict]) -> Tuple[str, int]:
    """
    Validate a POST /config body.

    Returns:
        Tuple of (url, poll_interval)
    """
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    url = validate_string(data.get('url'), 'url', max_len=2048, pattern='url')
    poll_interval = validate_positive_int(
        data.get('poll_interval'), 'poll_interval', max_value=MAX_POLL_INTERVAL
    )
    return url, poll_interval
