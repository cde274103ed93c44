"""Reusable validators for identifiers and contact fields.

Identifier checks raise `InvalidIdentifierError` rather than `ValueError`:
they run in the service layer (and in the client) before any store access,
so a malformed reference is reported as such instead of as a generic
request-validation failure.
"""

import re

from desicargo.middleware.exceptions import InvalidIdentifierError


# Any UUID version, case-insensitive
UUID_REGEX = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
MOBILE_REGEX = re.compile(r"^\+?\d{10,15}$")
# e.g. MH01AB1234, DL1CA4321
VEHICLE_NUMBER_REGEX = re.compile(r"^[A-Z]{2}\d{1,2}[A-Z]{0,3}\d{1,4}$")
TIME_REGEX = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_valid_uuid(value) -> bool:
    if not value or not isinstance(value, str):
        return False
    return bool(UUID_REGEX.match(value))


def ensure_uuid(value, label: str) -> str:
    """Return ``value`` unchanged if it is a well-formed UUID.

    Raises:
        InvalidIdentifierError: "Invalid {label} ID format"
    """
    if not is_valid_uuid(value):
        raise InvalidIdentifierError(f"Invalid {label} ID format")
    return value


def validate_mobile(value: str) -> str:
    """Strip spaces and dashes; require 10-15 digits with an optional leading +."""
    if not value:
        raise ValueError("Mobile number is required")

    value = re.sub(r"[\s-]", "", value)
    if not MOBILE_REGEX.match(value):
        raise ValueError("Invalid mobile number")
    return value


def validate_vehicle_number(value: str) -> str:
    """Normalise a registration plate to upper case without separators."""
    value = re.sub(r"[\s-]", "", value or "").upper()
    if not VEHICLE_NUMBER_REGEX.match(value):
        raise ValueError("Invalid vehicle number format")
    return value


def validate_time(value: str | None) -> str | None:
    if value is None:
        return value
    if not TIME_REGEX.match(value):
        raise ValueError("Time must be HH:MM (24h)")
    return value
