from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal
from datetime import datetime

from retail_core.models import MovementType


# Entrada de mercancía (compra)
class StockInCreate(BaseModel):
    product_id: int = Field(gt=0)
    qty: int = Field(gt=0)
    unit_cost: Decimal = Field(ge=0)
    reference: Optional[str] = None   # Por defecto "COMPRA"


# Salida manual (merma, ajuste)
class StockOutCreate(BaseModel):
    product_id: int = Field(gt=0)
    qty: int = Field(gt=0)
    reference: Optional[str] = None   # Por defecto "AJUSTE"


# Output para leer el Kardex
class MovementRead(BaseModel):
    id: int
    product_id: int
    type: MovementType
    qty: int
    unit_cost: Optional[Decimal] = None
    reference: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockRead(BaseModel):
    product_id: int
    stock: int


class StockSummaryRow(BaseModel):
    id: int
    sku: str
    name: str
    stock: int


class StockDrift(BaseModel):
    product_id: int
    ledger_stock: int
    qty_on_hand: int
