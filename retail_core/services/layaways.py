# retail_core/services/layaways.py
"""
Apartados: el cliente deja un abono inicial y paga en partes un producto
cuyo precio se congela al crear la cuenta.

Estados: OPEN -> CLOSED (terminal). Crear el apartado NO descuenta stock ni
reserva la unidad; la salida de kardex ocurre una sola vez, al cerrar, a
través de la venta que genera el cierre.
"""
from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from retail_core.config import LAYAWAY_CLOSE_THRESHOLD, PAYMENT_TOLERANCE
from retail_core.context import Actor
from retail_core.errors import ConflictError, NotFoundError, ValidationError
from retail_core.logs import get_logger
from retail_core.models import LayawayAccount, LayawayPayment, LayawayStatus, Product, Sale
from retail_core.services import sales as sales_service
from retail_core.services.reconciler import field_of, parse_method, validate_partial_payment
from retail_core.utils.folios import get_next_layaway_code

logger = get_logger(__name__)


def _upper(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value.upper() if value else None


def _get_layaway(db: Session, layaway_id: int, for_update: bool = False) -> LayawayAccount:
    query = db.query(LayawayAccount).filter(LayawayAccount.id == layaway_id)
    if for_update:
        query = query.with_for_update()
    account = query.first()
    if account is None:
        raise NotFoundError(f"Apartado {layaway_id} no encontrado")
    return account


def get_layaway(db: Session, layaway_id: int) -> LayawayAccount:
    return _get_layaway(db, layaway_id)


def list_layaways(db: Session, status: Optional[str] = None, q: Optional[str] = None, limit: int = 200) -> List[LayawayAccount]:
    query = db.query(LayawayAccount)
    if status:
        try:
            query = query.filter(LayawayAccount.status == LayawayStatus(status.upper()))
        except ValueError:
            raise ValidationError(f"Estado inválido: {status}")
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(
            LayawayAccount.code.ilike(pattern),
            LayawayAccount.customer_name.ilike(pattern),
            LayawayAccount.customer_phone.ilike(pattern),
        ))
    return query.order_by(LayawayAccount.created_at.asc(), LayawayAccount.id.asc()).limit(limit).all()


def create_layaway(
    db: Session,
    actor: Actor,
    product_id: int,
    customer,
    initial_deposit,
    method,
    notes: Optional[str] = None,
) -> LayawayAccount:
    """Abre el apartado con el precio actual del producto y el abono inicial."""
    # 1. Validar entrada
    if isinstance(customer, str):
        customer = {"name": customer}
    customer_name = _upper(field_of(customer, "name"))
    if not customer_name:
        raise ValidationError("El nombre del cliente es requerido")
    deposit = validate_partial_payment(initial_deposit, method)

    # 2. Congelar el precio del producto
    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Producto {product_id} no encontrado")
    if not product.is_active:
        raise ConflictError(f"El producto {product.sku} está inactivo")
    total_price = Decimal(product.price or 0)
    if total_price <= 0:
        raise ConflictError(f"El producto {product.sku} no tiene precio")
    if deposit > total_price + PAYMENT_TOLERANCE:
        raise ConflictError(f"El abono inicial ({deposit}) supera el precio ({total_price})")

    # 3. Crear cuenta y abono inicial
    account = LayawayAccount(
        code=get_next_layaway_code(db),
        status=LayawayStatus.OPEN,
        product_id=product.id,
        user_id=actor.id,
        customer_name=customer_name,
        customer_phone=(field_of(customer, "phone") or None),
        customer_doc=_upper(field_of(customer, "doc")),
        city=_upper(field_of(customer, "city")),
        notes=_upper(notes),
        total_price=total_price,
        initial_deposit=deposit,
    )
    account.payments.append(LayawayPayment(
        amount=deposit,
        method=parse_method(method),
        note="ABONO INICIAL",
        created_by=actor.username,
        is_initial=True,
    ))
    db.add(account)
    db.flush()

    logger.info(
        "Apartado %s creado por %s: producto=%s precio=%s abono=%s",
        account.code, actor.username, product.id, total_price, deposit,
    )
    return account


def add_layaway_payment(
    db: Session,
    actor: Actor,
    layaway_id: int,
    amount,
    method,
    note: Optional[str] = None,
    reference: Optional[str] = None,
) -> LayawayAccount:
    """Registra un abono. Un apartado cerrado no acepta más pagos."""
    value = validate_partial_payment(amount, method)
    account = _get_layaway(db, layaway_id, for_update=True)

    if account.status != LayawayStatus.OPEN:
        logger.warning("Abono rechazado: apartado %s está cerrado", account.code)
        raise ConflictError("El apartado está cerrado")

    new_total = account.total_paid + value
    if new_total > Decimal(account.total_price) + PAYMENT_TOLERANCE:
        raise ConflictError(f"El abono ({value}) supera el saldo pendiente ({account.balance})")

    account.payments.append(LayawayPayment(
        amount=value,
        method=parse_method(method),
        note=_upper(note),
        reference=_upper(reference),
        created_by=actor.username,
        is_initial=False,
    ))
    db.flush()

    logger.info("Abono a %s por %s: monto=%s pagado=%s", account.code, actor.username, value, account.total_paid)
    return account


def remove_layaway_payment(db: Session, actor: Actor, layaway_id: int, payment_id: int) -> LayawayAccount:
    """Corrige un abono mal registrado. El abono inicial no se puede quitar."""
    account = _get_layaway(db, layaway_id, for_update=True)
    if account.status != LayawayStatus.OPEN:
        raise ConflictError("El apartado está cerrado")

    payment = next((p for p in account.payments if p.id == payment_id), None)
    if payment is None:
        raise NotFoundError(f"Abono {payment_id} no encontrado")
    if payment.is_initial:
        raise ConflictError("El abono inicial no se puede eliminar")

    account.payments.remove(payment)
    db.flush()

    logger.info("Abono %s eliminado de %s por %s", payment_id, account.code, actor.username)
    return account


def close_layaway(db: Session, actor: Actor, layaway_id: int) -> Tuple[LayawayAccount, Sale]:
    """
    Cierra el apartado y genera la venta que entrega el producto.

    La venta lleva una línea (qty 1, precio = total abonado) y sus pagos son
    el reflejo de los abonos agrupados por método, marcados con el apartado
    para que caja no los cuente dos veces. Todo ocurre en la misma
    transacción: si no hay stock, el apartado sigue abierto.
    """
    account = _get_layaway(db, layaway_id, for_update=True)
    if account.status != LayawayStatus.OPEN:
        raise ConflictError("El apartado ya está cerrado")

    total_paid = account.total_paid
    balance = Decimal(account.total_price) - total_paid
    if balance > LAYAWAY_CLOSE_THRESHOLD:
        logger.warning("Cierre rechazado: %s tiene saldo %s", account.code, balance)
        raise ConflictError(f"Saldo pendiente {balance}: no se puede cerrar el apartado")

    # 1. Transición a CLOSED
    account.status = LayawayStatus.CLOSED
    account.closed_at = datetime.now(timezone.utc)
    db.flush()

    # 2. Abonos agrupados por método
    by_method = OrderedDict()
    for p in account.payments:
        by_method[p.method] = by_method.get(p.method, Decimal("0")) + Decimal(p.amount)
    mirror_payments = [
        {"method": method, "amount": amount, "note": f"APARTADO {account.code}"}
        for method, amount in by_method.items()
    ]

    # 3. Venta de cierre: una sola salida de kardex
    sale = sales_service.commit_sale(
        db, actor,
        lines=[{"product_id": account.product_id, "qty": 1, "unit_price": total_paid}],
        payments=mirror_payments,
        customer=account.customer_name,
        layaway_id=account.id,
    )
    account.sale_id = sale.id
    db.flush()

    logger.info("Apartado %s cerrado por %s: venta #%s", account.code, actor.username, sale.id)
    return account, sale
