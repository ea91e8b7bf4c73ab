from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from retail_core.models import LayawayStatus, PaymentMethod
from retail_core.schemas.sales import SaleRead


class CustomerInfo(BaseModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    doc: Optional[str] = None
    city: Optional[str] = None


class LayawayCreate(BaseModel):
    product_id: int = Field(gt=0)
    customer: CustomerInfo
    initial_deposit: Decimal = Field(gt=0)
    method: PaymentMethod
    notes: Optional[str] = None


class LayawayPaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    method: PaymentMethod
    note: Optional[str] = None
    reference: Optional[str] = None


class LayawayPaymentRead(BaseModel):
    id: int
    amount: Decimal
    method: PaymentMethod
    note: Optional[str] = None
    reference: Optional[str] = None
    created_by: Optional[str] = None
    is_initial: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LayawayRead(BaseModel):
    id: int
    code: str
    status: LayawayStatus
    product_id: int

    customer_name: str
    customer_phone: Optional[str] = None
    customer_doc: Optional[str] = None
    city: Optional[str] = None
    notes: Optional[str] = None

    total_price: Decimal
    initial_deposit: Decimal
    total_paid: Decimal
    balance: Decimal   # Saldo pendiente

    created_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    sale_id: Optional[int] = None

    payments: List[LayawayPaymentRead] = []

    class Config:
        from_attributes = True


class LayawayCloseResult(BaseModel):
    layaway: LayawayRead
    sale: SaleRead
