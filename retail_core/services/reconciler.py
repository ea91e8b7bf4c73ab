"""Validación compartida de pagos para ventas y apartados."""
from decimal import Decimal, InvalidOperation
from typing import Iterable

from retail_core.config import PAYMENT_TOLERANCE
from retail_core.errors import ConflictError, ValidationError
from retail_core.logs import get_logger
from retail_core.models import PaymentMethod

logger = get_logger(__name__)


def field_of(payment, name):
    if isinstance(payment, dict):
        return payment.get(name)
    return getattr(payment, name, None)


def to_amount(value) -> Decimal:
    """Convierte un monto a Decimal o lanza ValidationError."""
    if value is None or isinstance(value, bool):
        raise ValidationError("Monto inválido")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Monto inválido: {value}")
    if not amount.is_finite():
        raise ValidationError(f"Monto inválido: {value}")
    return amount


def parse_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise ValidationError(f"Método de pago desconocido: {value}")


def validate_payments(payments: Iterable, expected_total, tolerance: Decimal = PAYMENT_TOLERANCE) -> Decimal:
    """
    Cada pago: monto numérico >= 0 y método conocido.
    La suma debe quedar a `tolerance` o menos del total esperado.
    Devuelve la suma de los pagos.
    """
    payments = list(payments or [])
    if not payments:
        raise ValidationError("Se requiere al menos un pago")

    total_paid = Decimal("0")
    for payment in payments:
        parse_method(field_of(payment, "method"))
        amount = to_amount(field_of(payment, "amount"))
        if amount < 0:
            raise ValidationError("Los pagos no pueden ser negativos")
        total_paid += amount

    expected = to_amount(expected_total)
    if abs(total_paid - expected) > Decimal(tolerance):
        logger.warning("Pagos no cuadran: pagado=%s esperado=%s", total_paid, expected)
        raise ConflictError(f"La suma de pagos ({total_paid}) debe igualar el total ({expected})")
    return total_paid


def validate_partial_payment(amount, method) -> Decimal:
    """Abono de apartado: cualquier monto positivo, el total no se fija aquí."""
    parse_method(method)
    value = to_amount(amount)
    if value <= 0:
        raise ValidationError("El abono debe ser mayor a 0")
    return value
