# retail_core/routers/reports.py
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from retail_core.database import get_db
from retail_core.schemas.inventory import MovementRead
from retail_core.schemas.reports import PaymentsByMethod, PeriodSummary
from retail_core.schemas.sales import SaleRead
from retail_core.security import Actor, get_current_actor
from retail_core.services import reports

router = APIRouter()


@router.get("/movements", response_model=List[MovementRead])
def read_movements(
    date_from: date,
    date_to: date,
    product_id: Optional[int] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return reports.movements_in_period(db, date_from, date_to, product_id=product_id)


@router.get("/sales", response_model=List[SaleRead])
def read_sales(
    date_from: date,
    date_to: date,
    include_void: bool = False,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return reports.sales_in_period(db, date_from, date_to, include_void=include_void)


@router.get("/payments", response_model=PaymentsByMethod)
def read_payments(
    date_from: date,
    date_to: date,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Dinero recibido por método (ventas directas + abonos de apartados)."""
    return reports.payments_by_method(db, date_from, date_to)


@router.get("/summary", response_model=PeriodSummary)
def read_summary(
    date_from: date,
    date_to: date,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return reports.period_summary(db, date_from, date_to)
