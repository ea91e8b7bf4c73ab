# retail_core/routers/inventory.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from retail_core.database import get_db, transaction
from retail_core.models import Role
from retail_core.schemas.inventory import (
    StockInCreate, StockOutCreate, MovementRead, StockRead, StockSummaryRow, StockDrift
)
from retail_core.security import Actor, get_current_actor, require_role
from retail_core.services import ledger

router = APIRouter()


@router.post("/in", response_model=MovementRead, status_code=201)
def create_stock_in(
    data: StockInCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.ADMIN))
):
    """Entrada de mercancía: suma stock y recalcula el costo promedio."""
    with transaction(db):
        movement = ledger.stock_in(db, actor, data.product_id, data.qty, data.unit_cost, data.reference)
    db.refresh(movement)
    return movement


@router.post("/out", response_model=MovementRead, status_code=201)
def create_stock_out(
    data: StockOutCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.ADMIN))
):
    """Salida manual (merma/ajuste)."""
    with transaction(db):
        movement = ledger.stock_out(db, actor, data.product_id, data.qty, data.reference)
    db.refresh(movement)
    return movement


@router.get("/stock/{product_id}", response_model=StockRead)
def get_stock(
    product_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    stock = ledger.compute_stock(db, product_id)
    return StockRead(product_id=product_id, stock=stock)


@router.get("/summary", response_model=List[StockSummaryRow])
def get_stock_summary(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return ledger.stock_summary(db)


@router.get("/kardex/{product_id}", response_model=List[MovementRead])
def get_kardex(
    product_id: int,
    limit: int = 100,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Historial de movimientos de un producto"""
    return ledger.list_movements(db, product_id, limit=limit)


@router.get("/audit", response_model=List[StockDrift])
def get_stock_audit(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(Role.ADMIN))
):
    """Saldo materializado vs kardex; una lista vacía significa que todo cuadra."""
    return ledger.audit_stock(db)
