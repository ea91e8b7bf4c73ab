from decimal import Decimal
from types import SimpleNamespace

import pytest

from retail_core.errors import ConflictError, ValidationError
from retail_core.models import PaymentMethod
from retail_core.services.reconciler import validate_partial_payment, validate_payments


def pay(method, amount):
    return {"method": method, "amount": amount}


def test_exact_mixed_payments_are_accepted():
    payments = [pay("EFECTIVO", 60000), pay("QR_LLAVE", 40000)]
    assert validate_payments(payments, 100000) == Decimal("100000")


def test_rounding_difference_within_tolerance():
    assert validate_payments([pay("DATAFONO", "99999.6")], 100000) == Decimal("99999.6")
    assert validate_payments([pay("EFECTIVO", "100000.5")], 100000) == Decimal("100000.5")


def test_difference_beyond_tolerance_is_a_conflict():
    with pytest.raises(ConflictError):
        validate_payments([pay("EFECTIVO", "99999.4")], 100000)
    with pytest.raises(ConflictError):
        validate_payments([pay("EFECTIVO", 60000), pay("QR_LLAVE", 30000)], 100000)


@pytest.mark.parametrize("payments", [
    [],
    None,
    [pay("EFECTIVO", -1), pay("EFECTIVO", 1)],
    [pay("CHEQUE", 100)],
    [pay(None, 100)],
    [pay("EFECTIVO", "cien")],
    [pay("EFECTIVO", None)],
    [pay("EFECTIVO", float("nan"))],
])
def test_malformed_payments_are_rejected(payments):
    with pytest.raises(ValidationError):
        validate_payments(payments, 100)


def test_payment_objects_and_enums_are_accepted():
    payments = [
        SimpleNamespace(method=PaymentMethod.EFECTIVO, amount=Decimal("20")),
        SimpleNamespace(method=PaymentMethod.DATAFONO, amount=Decimal("30")),
    ]
    assert validate_payments(payments, Decimal("50")) == Decimal("50")


def test_zero_amount_line_counts_as_nothing():
    assert validate_payments([pay("EFECTIVO", 50), pay("QR_LLAVE", 0)], 50) == Decimal("50")


def test_partial_payment_must_be_positive():
    assert validate_partial_payment("250.50", "QR_LLAVE") == Decimal("250.50")
    for amount in (0, -10):
        with pytest.raises(ValidationError):
            validate_partial_payment(amount, "EFECTIVO")
    with pytest.raises(ValidationError):
        validate_partial_payment(100, "BITCOIN")
