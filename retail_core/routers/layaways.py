# retail_core/routers/layaways.py
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from retail_core.database import get_db, transaction
from retail_core.models import Role
from retail_core.schemas.layaways import (
    LayawayCreate, LayawayPaymentCreate, LayawayRead, LayawayCloseResult
)
from retail_core.security import Actor, get_current_actor, require_role
from retail_core.services import layaways as layaway_service

router = APIRouter()


@router.get("/", response_model=List[LayawayRead])
def read_layaways(
    status: Optional[str] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return layaway_service.list_layaways(db, status=status, q=q)


@router.post("/", response_model=LayawayRead, status_code=201)
def create_layaway(
    data: LayawayCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Abre un apartado con el precio actual del producto y el abono inicial."""
    with transaction(db):
        account = layaway_service.create_layaway(
            db, actor,
            product_id=data.product_id,
            customer=data.customer,
            initial_deposit=data.initial_deposit,
            method=data.method,
            notes=data.notes,
        )
    db.refresh(account)
    return account


@router.get("/{layaway_id}", response_model=LayawayRead)
def read_layaway(
    layaway_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return layaway_service.get_layaway(db, layaway_id)


@router.post("/{layaway_id}/payments", response_model=LayawayRead, status_code=201)
def add_payment(
    layaway_id: int,
    data: LayawayPaymentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    with transaction(db):
        account = layaway_service.add_layaway_payment(
            db, actor, layaway_id, data.amount, data.method,
            note=data.note, reference=data.reference,
        )
    db.refresh(account)
    return account


@router.delete("/{layaway_id}/payments/{payment_id}", response_model=LayawayRead)
def delete_payment(
    layaway_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.ADMIN))
):
    with transaction(db):
        account = layaway_service.remove_layaway_payment(db, actor, layaway_id, payment_id)
    db.refresh(account)
    return account


@router.post("/{layaway_id}/close", response_model=LayawayCloseResult)
def close_layaway(
    layaway_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Cierra el apartado: entrega el producto y registra la venta."""
    with transaction(db):
        account, sale = layaway_service.close_layaway(db, actor, layaway_id)
    db.refresh(account)
    db.refresh(sale)
    return {"layaway": account, "sale": sale}
