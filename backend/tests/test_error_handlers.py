"""Constraint violations that reach the database are reported as domain errors."""

import pytest
from sqlalchemy.exc import IntegrityError

from desicargo.middleware.exceptions import describe_integrity_error


def integrity(message: str) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, Exception(message))


@pytest.mark.parametrize("raw,expected", [
    ("UNIQUE constraint failed: bookings.lr_number", "LR number already exists"),
    ('duplicate key value violates unique constraint "vehicles_vehicle_number_key"',
     "Vehicle number already registered"),
    ("UNIQUE constraint failed: users.email", "Email already registered"),
    ("UNIQUE constraint failed: branches.code", "Branch code already exists"),
])
def test_unique_violations_name_the_column(raw, expected):
    assert describe_integrity_error(integrity(raw)) == ("DUPLICATE_RECORD", expected)


def test_unknown_unique_column_falls_back():
    code, message = describe_integrity_error(integrity("UNIQUE constraint failed: customers.gstin"))
    assert code == "DUPLICATE_RECORD"
    assert message == "A record with this value already exists"


def test_foreign_key_violation():
    code, _ = describe_integrity_error(integrity("FOREIGN KEY constraint failed"))
    assert code == "REFERENTIAL_INTEGRITY"


def test_not_null_and_other_violations():
    assert describe_integrity_error(integrity("NOT NULL constraint failed: bookings.total_amount"))[0] == "PERSISTENCE_ERROR"
    assert describe_integrity_error(integrity("CHECK constraint failed"))[0] == "PERSISTENCE_ERROR"
