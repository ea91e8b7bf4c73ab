import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_core.database import Base


# --- Enums ---
class SaleStatus(str, enum.Enum):
    PAID = "PAID"
    VOID = "VOID"         # Anulada: el stock regresó con movimientos IN


class PaymentMethod(str, enum.Enum):
    EFECTIVO = "EFECTIVO"
    QR_LLAVE = "QR_LLAVE"   # Transferencia por QR / llave
    DATAFONO = "DATAFONO"   # Tarjeta


# --- Modelo 1: Encabezado de Venta ---
class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(Enum(SaleStatus), default=SaleStatus.PAID, nullable=False)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    customer = Column(String, nullable=True)

    # Venta generada al cerrar un apartado
    layaway_id = Column(Integer, ForeignKey("layaway_accounts.id"), nullable=True)

    total = Column(Numeric(12, 2), default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    voided_at = Column(DateTime(timezone=True), nullable=True)

    # Relaciones
    lines = relationship("SaleLine", back_populates="sale", cascade="all, delete-orphan", order_by="SaleLine.id")
    payments = relationship("Payment", back_populates="sale", cascade="all, delete-orphan", order_by="Payment.id")


# --- Modelo 2: Detalle de Venta ---
class SaleLine(Base):
    __tablename__ = "sale_lines"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    qty = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=False)  # Costo congelado al momento de la venta
    total_line = Column(Numeric(12, 2), nullable=False)

    sale = relationship("Sale", back_populates="lines")
    product = relationship("Product")


# --- Modelo 3: Pagos de la venta (pago mixto = varias filas) ---
class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)

    method = Column(Enum(PaymentMethod), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    reference = Column(String, nullable=True)  # Num. autorización datáfono / comprobante QR
    note = Column(String, nullable=True)

    # Si viene de un apartado, el dinero ya entró como abono: no se suma dos veces en caja
    layaway_id = Column(Integer, ForeignKey("layaway_accounts.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    sale = relationship("Sale", back_populates="payments")
