# retail_core/services/sales.py
"""
Ventas POS: alta, edición de pagos y anulación.

Cada operación se ejecuta dentro de `transaction(db)`; si algo falla (stock
insuficiente, pagos que no cuadran) no queda ninguna fila a medias.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from retail_core.context import Actor
from retail_core.errors import ConflictError, NotFoundError, ValidationError
from retail_core.logs import get_logger
from retail_core.models import MovementType, Payment, Product, Sale, SaleLine, SaleStatus
from retail_core.services import ledger
from retail_core.services.reconciler import field_of, parse_method, to_amount, validate_payments

logger = get_logger(__name__)


def sale_reference(sale_id: int) -> str:
    return f"sale#{sale_id}"


def _normalize_lines(lines: Iterable) -> List[dict]:
    normalized = []
    for line in lines or []:
        product_id = field_of(line, "product_id")
        qty = field_of(line, "qty")
        if isinstance(product_id, bool) or not isinstance(product_id, int) or product_id <= 0:
            raise ValidationError(f"Producto inválido: {product_id}")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError("La cantidad debe ser un entero mayor a 0")
        unit_price = to_amount(field_of(line, "unit_price"))
        if unit_price < 0:
            raise ValidationError("El precio unitario no puede ser negativo")
        normalized.append({"product_id": product_id, "qty": qty, "unit_price": unit_price})
    if not normalized:
        raise ValidationError("El ticket está vacío")
    return normalized


def _lines_total(lines) -> Decimal:
    return sum((Decimal(l["qty"]) * l["unit_price"] for l in lines), Decimal("0"))


def _get_sale(db: Session, sale_id: int, for_update: bool = False) -> Sale:
    query = db.query(Sale).filter(Sale.id == sale_id)
    if for_update:
        query = query.with_for_update()
    sale = query.first()
    if sale is None:
        raise NotFoundError(f"Venta {sale_id} no encontrada")
    return sale


def _build_payments(payments, layaway_id: Optional[int] = None) -> List[Payment]:
    rows = []
    for p in payments:
        amount = to_amount(field_of(p, "amount"))
        # Pagos en 0 no se guardan
        if amount <= 0:
            continue
        reference = field_of(p, "reference")
        note = field_of(p, "note")
        rows.append(Payment(
            method=parse_method(field_of(p, "method")),
            amount=amount,
            reference=reference.strip().upper() if reference else None,
            note=note.strip().upper() if note else None,
            layaway_id=layaway_id,
        ))
    return rows


def get_sale(db: Session, sale_id: int) -> Sale:
    return _get_sale(db, sale_id)


def commit_sale(
    db: Session,
    actor: Actor,
    lines: Iterable,
    payments: Iterable,
    customer: Optional[str] = None,
    layaway_id: Optional[int] = None,
) -> Sale:
    """
    Registra una venta: encabezado, líneas, pagos y una salida de kardex por línea.
    Si `layaway_id` viene, la venta cierra un apartado y sus pagos reflejan abonos ya cobrados.
    """
    # 1. Validar líneas y calcular total
    norm_lines = _normalize_lines(lines)
    total = _lines_total(norm_lines)

    # 2. Conciliar pagos contra el total
    payments = list(payments or [])
    validate_payments(payments, total)

    # 3. Encabezado
    sale = Sale(
        status=SaleStatus.PAID,
        user_id=actor.id,
        customer=customer.strip().upper() if customer and customer.strip() else None,
        layaway_id=layaway_id,
        total=total,
    )
    db.add(sale)
    db.flush()  # Obtenemos el ID de la venta

    # 4. Líneas con costo congelado
    products = {}
    for line in norm_lines:
        product = db.get(Product, line["product_id"])
        if product is None:
            raise NotFoundError(f"Producto {line['product_id']} no encontrado")
        products[product.id] = product
        sale.lines.append(SaleLine(
            product_id=product.id,
            qty=line["qty"],
            unit_price=line["unit_price"],
            unit_cost=Decimal(product.cost or 0),
            total_line=Decimal(line["qty"]) * line["unit_price"],
        ))

    # 5. Pagos
    for payment in _build_payments(payments, layaway_id):
        sale.payments.append(payment)
    db.flush()

    # 6. Salidas de kardex; en orden de producto para bloquear siempre igual
    for line in sorted(sale.lines, key=lambda l: (l.product_id, l.id)):
        ledger.record_movement(
            db, line.product_id, MovementType.OUT, line.qty,
            unit_cost=products[line.product_id].cost,
            reference=sale_reference(sale.id),
            actor=actor,
        )

    logger.info(
        "Venta #%s registrada por %s: total=%s lineas=%s pagos=%s",
        sale.id, actor.username, total, len(sale.lines), len(sale.payments),
    )
    return sale


def edit_payments(db: Session, actor: Actor, sale_id: int, payments: Iterable) -> Sale:
    """Reemplaza los pagos de una venta. El total sale de sus líneas; el kardex no se toca."""
    sale = _get_sale(db, sale_id, for_update=True)
    if sale.status == SaleStatus.VOID:
        raise ConflictError("La venta está anulada")
    if sale.layaway_id is not None:
        raise ConflictError("Los pagos de una venta de apartado se corrigen en el apartado")

    total = sum((Decimal(l.qty) * Decimal(l.unit_price) for l in sale.lines), Decimal("0"))
    payments = list(payments or [])
    validate_payments(payments, total)

    # delete-orphan borra los anteriores
    sale.payments.clear()
    db.flush()
    for payment in _build_payments(payments):
        sale.payments.append(payment)
    sale.total = total
    db.flush()

    logger.info("Pagos de venta #%s reemplazados por %s", sale.id, actor.username)
    return sale


def void_sale(db: Session, actor: Actor, sale_id: int) -> Sale:
    """
    Anula la venta. El stock regresa con entradas compensatorias `sale#<id>:void`;
    las salidas originales se quedan en el kardex.
    """
    sale = _get_sale(db, sale_id, for_update=True)
    if sale.status == SaleStatus.VOID:
        raise ConflictError("La venta ya está anulada")
    if sale.layaway_id is not None:
        raise ConflictError("La venta de un apartado cerrado no se puede anular")

    reference = f"{sale_reference(sale.id)}:void"
    for line in sorted(sale.lines, key=lambda l: (l.product_id, l.id)):
        ledger.record_movement(
            db, line.product_id, MovementType.IN, line.qty,
            unit_cost=line.unit_cost,
            reference=reference,
            notes=f"Anulación por {actor.username}",
            actor=actor,
        )

    sale.status = SaleStatus.VOID
    sale.voided_at = datetime.now(timezone.utc)
    db.flush()

    logger.info("Venta #%s anulada por %s", sale.id, actor.username)
    return sale
