# retail_core/routers/sales.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from retail_core.database import get_db, transaction
from retail_core.models import Role
from retail_core.schemas.sales import SaleCreate, SalePaymentsUpdate, SaleRead
from retail_core.security import Actor, get_current_actor, require_role
from retail_core.services import sales as sales_service

router = APIRouter()


@router.post("/", response_model=SaleRead, status_code=201)
def create_sale(
    sale_in: SaleCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """
    Registra una venta, descuenta stock y guarda los pagos (mixtos).
    La suma de pagos debe igualar el total.
    """
    with transaction(db):
        sale = sales_service.commit_sale(
            db, actor,
            lines=sale_in.items,
            payments=sale_in.payments,
            customer=sale_in.customer,
        )
    db.refresh(sale)
    return sale


@router.get("/{sale_id}", response_model=SaleRead)
def read_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return sales_service.get_sale(db, sale_id)


@router.put("/{sale_id}/payments", response_model=SaleRead)
def update_sale_payments(
    sale_id: int,
    data: SalePaymentsUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.ADMIN))
):
    with transaction(db):
        sale = sales_service.edit_payments(db, actor, sale_id, data.payments)
    db.refresh(sale)
    return sale


@router.post("/{sale_id}/void", response_model=SaleRead)
def void_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.ADMIN))
):
    """Anula la venta y regresa el stock con entradas compensatorias."""
    with transaction(db):
        sale = sales_service.void_sale(db, actor, sale_id)
    db.refresh(sale)
    return sale
