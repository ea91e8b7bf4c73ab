# retail_core/services/ledger.py
"""
Kardex de inventario (solo inserción).

El stock de un producto es siempre SUM(IN) - SUM(OUT) sobre stock_movements.
`stock_on_hand` es un saldo materializado que solo se mueve aquí, dentro de la
misma transacción que el movimiento, y cuya fila sirve de candado por producto.

Ninguna función confirma la transacción: el llamador abre `transaction(db)`.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from retail_core.config import ALLOW_NEGATIVE_STOCK
from retail_core.context import Actor
from retail_core.errors import ConflictError, NotFoundError, ValidationError
from retail_core.logs import get_logger
from retail_core.models import MovementType, Product, StockMovement, StockOnHand
from retail_core.services.reconciler import to_amount

logger = get_logger(__name__)

CENTS = Decimal("0.01")

# +qty para entradas, -qty para salidas
_signed_qty = case(
    (StockMovement.type == MovementType.OUT, -StockMovement.qty),
    else_=StockMovement.qty,
)


def _get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Producto {product_id} no encontrado")
    return product


def lock_product_stock(db: Session, product_id: int) -> StockOnHand:
    """
    Bloquea la fila de saldo del producto hasta el fin de la transacción
    (SELECT ... FOR UPDATE). La crea si el producto aún no la tiene.
    """
    _get_product(db, product_id)
    row = (
        db.query(StockOnHand)
        .filter(StockOnHand.product_id == product_id)
        .with_for_update()
        .first()
    )
    if row is None:
        row = StockOnHand(product_id=product_id, qty_on_hand=0)
        db.add(row)
        db.flush()
    return row


def _ledger_stock(db: Session, product_id: int) -> int:
    total = (
        db.query(func.coalesce(func.sum(_signed_qty), 0))
        .filter(StockMovement.product_id == product_id)
        .scalar()
    )
    return int(total or 0)


def compute_stock(db: Session, product_id: int) -> int:
    """Stock actual según el kardex, leído en la transacción en curso."""
    _get_product(db, product_id)
    return _ledger_stock(db, product_id)


def _parse_type(movement_type) -> MovementType:
    try:
        return MovementType(movement_type)
    except ValueError:
        raise ValidationError(f"Tipo de movimiento inválido: {movement_type}")


def record_movement(
    db: Session,
    product_id: int,
    movement_type,
    qty: int,
    unit_cost=None,
    reference: str = "",
    notes: Optional[str] = None,
    actor: Optional[Actor] = None,
    allow_negative: Optional[bool] = None,
) -> StockMovement:
    """
    Agrega un movimiento al kardex y devuelve la fila creada.

    Lee el stock y escribe el movimiento bajo el mismo candado, así dos
    ventas simultáneas del mismo producto no pueden ver el mismo saldo.
    """
    mov_type = _parse_type(movement_type)

    # 1. Validar forma
    if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
        raise ValidationError("La cantidad debe ser un entero mayor a 0")
    if not reference or not str(reference).strip():
        raise ValidationError("El movimiento requiere una referencia")
    if unit_cost is not None:
        unit_cost = to_amount(unit_cost)
        if unit_cost < 0:
            raise ValidationError("El costo unitario no puede ser negativo")
    if mov_type == MovementType.IN and unit_cost is None:
        raise ValidationError("Las entradas requieren costo unitario")

    # 2. Bloquear producto y calcular stock en la misma transacción
    stock_row = lock_product_stock(db, product_id)
    current = _ledger_stock(db, product_id)

    delta = qty if mov_type == MovementType.IN else -qty
    new_stock = current + delta

    if allow_negative is None:
        allow_negative = ALLOW_NEGATIVE_STOCK
    if mov_type == MovementType.OUT and new_stock < 0 and not allow_negative:
        logger.warning(
            "Salida rechazada producto=%s disponible=%s solicitado=%s ref=%s",
            product_id, current, qty, reference,
        )
        raise ConflictError(f"insufficient stock: producto {product_id} disponible {current}, solicitado {qty}")

    # 3. Registrar movimiento y mover el saldo materializado
    movement = StockMovement(
        product_id=product_id,
        user_id=actor.id if actor else None,
        type=mov_type,
        qty=qty,
        unit_cost=unit_cost,
        reference=str(reference).strip(),
        notes=notes,
    )
    db.add(movement)
    stock_row.qty_on_hand = new_stock
    db.flush()

    logger.info(
        "Kardex %s producto=%s qty=%s stock %s -> %s ref=%s",
        mov_type.value, product_id, qty, current, new_stock, movement.reference,
    )
    return movement


def stock_in(
    db: Session,
    actor: Actor,
    product_id: int,
    qty: int,
    unit_cost,
    reference: Optional[str] = None,
) -> StockMovement:
    """
    Entrada de mercancía. Recalcula el costo promedio ponderado:
    (stock_prev * costo_prev + qty * costo_nuevo) / (stock_prev + qty)
    """
    product = _get_product(db, product_id)
    unit_cost = to_amount(unit_cost)

    lock_product_stock(db, product_id)
    prev_stock = max(_ledger_stock(db, product_id), 0)
    prev_avg = Decimal(product.cost or 0)

    movement = record_movement(
        db, product_id, MovementType.IN, qty,
        unit_cost=unit_cost,
        reference=reference.strip().upper() if reference else "COMPRA",
        actor=actor,
    )

    new_qty = prev_stock + qty
    new_avg = (prev_stock * prev_avg + qty * unit_cost) / new_qty
    product.cost = new_avg.quantize(CENTS, rounding=ROUND_HALF_UP)
    db.flush()
    return movement


def stock_out(
    db: Session,
    actor: Actor,
    product_id: int,
    qty: int,
    reference: Optional[str] = None,
) -> StockMovement:
    """Salida manual (merma/ajuste). No toca el costo promedio."""
    product = _get_product(db, product_id)
    return record_movement(
        db, product_id, MovementType.OUT, qty,
        unit_cost=product.cost,
        reference=reference.strip().upper() if reference else "AJUSTE",
        actor=actor,
    )


def list_movements(db: Session, product_id: int, limit: int = 100) -> List[StockMovement]:
    """Historial de movimientos de un producto, el más reciente primero."""
    _get_product(db, product_id)
    return (
        db.query(StockMovement)
        .filter(StockMovement.product_id == product_id)
        .order_by(StockMovement.id.desc())
        .limit(limit)
        .all()
    )


def stock_summary(db: Session) -> List[dict]:
    """Stock de todos los productos activos, agregado desde el kardex."""
    rows = (
        db.query(
            Product.id, Product.sku, Product.name,
            func.coalesce(func.sum(_signed_qty), 0).label("stock"),
        )
        .outerjoin(StockMovement, StockMovement.product_id == Product.id)
        .filter(Product.is_active.is_(True))
        .group_by(Product.id, Product.sku, Product.name)
        .order_by(Product.sku)
        .all()
    )
    return [{"id": r.id, "sku": r.sku, "name": r.name, "stock": int(r.stock)} for r in rows]


def audit_stock(db: Session) -> List[dict]:
    """Productos cuyo saldo materializado no coincide con el kardex. Debe venir vacío."""
    ledger = (
        db.query(
            StockMovement.product_id.label("product_id"),
            func.sum(_signed_qty).label("stock"),
        )
        .group_by(StockMovement.product_id)
        .subquery()
    )
    rows = (
        db.query(StockOnHand.product_id, StockOnHand.qty_on_hand, func.coalesce(ledger.c.stock, 0))
        .outerjoin(ledger, ledger.c.product_id == StockOnHand.product_id)
        .all()
    )
    drifts = []
    for product_id, on_hand, ledger_stock in rows:
        if int(on_hand) != int(ledger_stock):
            drifts.append({"product_id": product_id, "ledger_stock": int(ledger_stock), "qty_on_hand": int(on_hand)})
    if drifts:
        logger.error("Saldo materializado desalineado con el kardex: %s", drifts)
    return drifts
