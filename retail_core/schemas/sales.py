from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from retail_core.models import PaymentMethod, SaleStatus


# --- Models for Creation ---

class SaleLineCreate(BaseModel):
    product_id: int = Field(gt=0)
    qty: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class PaymentCreate(BaseModel):
    method: PaymentMethod
    amount: Decimal = Field(ge=0)
    reference: Optional[str] = None
    note: Optional[str] = None


class SaleCreate(BaseModel):
    customer: Optional[str] = None
    items: List[SaleLineCreate] = Field(min_length=1)
    payments: List[PaymentCreate] = Field(min_length=1)


class SalePaymentsUpdate(BaseModel):
    payments: List[PaymentCreate] = Field(min_length=1)


# --- Models for Reading ---

class SaleLineRead(BaseModel):
    id: int
    product_id: int
    qty: int
    unit_price: Decimal
    unit_cost: Decimal
    total_line: Decimal

    class Config:
        from_attributes = True


class PaymentRead(BaseModel):
    id: int
    method: PaymentMethod
    amount: Decimal
    reference: Optional[str] = None
    note: Optional[str] = None
    layaway_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SaleRead(BaseModel):
    id: int
    status: SaleStatus
    customer: Optional[str] = None
    user_id: Optional[int] = None
    layaway_id: Optional[int] = None
    total: Decimal
    created_at: Optional[datetime] = None
    voided_at: Optional[datetime] = None

    lines: List[SaleLineRead] = []
    payments: List[PaymentRead] = []

    class Config:
        from_attributes = True
