import enum
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Enum, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_core.database import Base
from retail_core.models.sales import PaymentMethod


class LayawayStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"   # Terminal: no se reabre ni recibe abonos


class LayawayAccount(Base):
    """
    Apartado: el cliente abona hasta completar el precio congelado del producto.
    No descuenta stock al crearse; la salida ocurre una sola vez, al cerrar.
    """
    __tablename__ = "layaway_accounts"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, index=True, nullable=False)  # AP-00001
    status = Column(Enum(LayawayStatus), default=LayawayStatus.OPEN, nullable=False)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    customer_doc = Column(String, nullable=True)
    city = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    total_price = Column(Numeric(12, 2), nullable=False)      # Precio congelado
    initial_deposit = Column(Numeric(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    closed_at = Column(DateTime(timezone=True), nullable=True)

    # Venta que registra la salida del producto al cerrar
    sale_id = Column(Integer, ForeignKey("sales.id", use_alter=True), nullable=True)

    product = relationship("Product")
    payments = relationship(
        "LayawayPayment", back_populates="layaway",
        cascade="all, delete-orphan", order_by="LayawayPayment.id",
    )

    # Siempre derivado de los abonos, nunca se guarda
    @property
    def total_paid(self) -> Decimal:
        return sum((Decimal(p.amount) for p in self.payments), Decimal("0"))

    @property
    def balance(self) -> Decimal:
        return Decimal(self.total_price) - self.total_paid


class LayawayPayment(Base):
    __tablename__ = "layaway_payments"

    id = Column(Integer, primary_key=True, index=True)
    layaway_id = Column(Integer, ForeignKey("layaway_accounts.id"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(Enum(PaymentMethod), nullable=False)
    note = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    created_by = Column(String, nullable=True)

    is_initial = Column(Boolean, default=False, nullable=False)  # Abono inicial
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    layaway = relationship("LayawayAccount", back_populates="payments")
