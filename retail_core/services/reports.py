"""Consultas de solo lectura por periodo sobre kardex, ventas y pagos."""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from retail_core.errors import ValidationError
from retail_core.models import (
    LayawayPayment, Payment, PaymentMethod, Sale, SaleLine, SaleStatus, StockMovement,
)


def period_bounds(date_from: date, date_to: date) -> Tuple[datetime, datetime]:
    """Días completos: [date_from 00:00, date_to + 1 día 00:00)."""
    if date_from > date_to:
        raise ValidationError("date_from no puede ser mayor que date_to")
    start = datetime.combine(date_from, time.min)
    end = datetime.combine(date_to + timedelta(days=1), time.min)
    return start, end


def _empty_methods() -> Dict[str, Decimal]:
    return {m.value: Decimal("0") for m in PaymentMethod}


def movements_in_period(db: Session, date_from: date, date_to: date, product_id: Optional[int] = None) -> List[StockMovement]:
    start, end = period_bounds(date_from, date_to)
    query = db.query(StockMovement).filter(StockMovement.created_at >= start, StockMovement.created_at < end)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    return query.order_by(StockMovement.id.asc()).all()


def sales_in_period(db: Session, date_from: date, date_to: date, include_void: bool = False) -> List[Sale]:
    start, end = period_bounds(date_from, date_to)
    query = (
        db.query(Sale)
        .options(selectinload(Sale.lines), selectinload(Sale.payments))
        .filter(Sale.created_at >= start, Sale.created_at < end)
    )
    if not include_void:
        query = query.filter(Sale.status == SaleStatus.PAID)
    return query.order_by(Sale.id.asc()).all()


def payments_by_method(db: Session, date_from: date, date_to: date) -> dict:
    """
    Dinero recibido por método. Los pagos espejo de las ventas de cierre de
    apartado se excluyen: ese dinero ya está en los abonos.
    """
    start, end = period_bounds(date_from, date_to)

    # 1. Pagos de ventas directas (no anuladas)
    sale_rows = (
        db.query(Payment.method, func.sum(Payment.amount))
        .join(Sale, Sale.id == Payment.sale_id)
        .filter(
            Payment.created_at >= start, Payment.created_at < end,
            Sale.status == SaleStatus.PAID,
            Payment.layaway_id.is_(None),
        )
        .group_by(Payment.method)
        .all()
    )

    # 2. Abonos de apartados
    layaway_rows = (
        db.query(LayawayPayment.method, func.sum(LayawayPayment.amount))
        .filter(LayawayPayment.created_at >= start, LayawayPayment.created_at < end)
        .group_by(LayawayPayment.method)
        .all()
    )

    sales_part = _empty_methods()
    for method, amount in sale_rows:
        sales_part[method.value] = Decimal(str(amount or 0))
    layaway_part = _empty_methods()
    for method, amount in layaway_rows:
        layaway_part[method.value] = Decimal(str(amount or 0))
    total = {k: sales_part[k] + layaway_part[k] for k in sales_part}

    return {
        "date_from": date_from,
        "date_to": date_to,
        "sales": sales_part,
        "layaways": layaway_part,
        "total": total,
    }


def period_summary(db: Session, date_from: date, date_to: date) -> dict:
    start, end = period_bounds(date_from, date_to)
    in_period = (Sale.created_at >= start, Sale.created_at < end)

    sales_count, sales_total = (
        db.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total), 0))
        .filter(*in_period, Sale.status == SaleStatus.PAID)
        .one()
    )

    # Costo con el costo congelado en cada línea
    cost_of_goods = (
        db.query(func.coalesce(func.sum(SaleLine.qty * SaleLine.unit_cost), 0))
        .join(Sale, Sale.id == SaleLine.sale_id)
        .filter(*in_period, Sale.status == SaleStatus.PAID)
        .scalar()
    )

    voided_count = (
        db.query(func.count(Sale.id))
        .filter(*in_period, Sale.status == SaleStatus.VOID)
        .scalar()
    )

    layaway_deposits = (
        db.query(func.coalesce(func.sum(LayawayPayment.amount), 0))
        .filter(LayawayPayment.created_at >= start, LayawayPayment.created_at < end)
        .scalar()
    )

    sales_total = Decimal(str(sales_total or 0))
    cost_of_goods = Decimal(str(cost_of_goods or 0))
    return {
        "date_from": date_from,
        "date_to": date_to,
        "sales_count": int(sales_count or 0),
        "sales_total": sales_total,
        "cost_of_goods": cost_of_goods,
        "gross_profit": sales_total - cost_of_goods,
        "voided_count": int(voided_count or 0),
        "layaway_deposits": Decimal(str(layaway_deposits or 0)),
    }
