from pydantic import BaseModel
from typing import Dict
from datetime import date
from decimal import Decimal


class PaymentsByMethod(BaseModel):
    date_from: date
    date_to: date
    sales: Dict[str, Decimal]      # Pagos de ventas directas
    layaways: Dict[str, Decimal]   # Abonos de apartados
    total: Dict[str, Decimal]


class PeriodSummary(BaseModel):
    date_from: date
    date_to: date
    sales_count: int
    sales_total: Decimal
    cost_of_goods: Decimal
    gross_profit: Decimal
    voided_count: int
    layaway_deposits: Decimal
