from sqlalchemy import Column, Integer, String, ForeignKey, Enum, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from retail_core.database import Base
import enum


class MovementType(str, enum.Enum):
    IN = "IN"     # Entrada (compra, anulación de venta)
    OUT = "OUT"   # Salida (venta, ajuste, cierre de apartado)


class StockMovement(Base):
    """
    Kardex. Solo se insertan filas: nunca se editan ni se borran.
    Las correcciones se hacen con un movimiento contrario.
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    type = Column(Enum(MovementType), nullable=False)
    qty = Column(Integer, nullable=False)  # Siempre positivo
    unit_cost = Column(Numeric(12, 2), nullable=True)

    reference = Column(String, nullable=False, index=True)  # sale#15, sale#15:void, COMPRA...
    notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product")
    user = relationship("User")


class StockOnHand(Base):
    """
    Saldo materializado por producto. Solo lo mueve ledger.record_movement,
    en la misma transacción que el movimiento. También es la fila que se
    bloquea para serializar ventas del mismo producto.
    """
    __tablename__ = "stock_on_hand"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, unique=True)

    qty_on_hand = Column(Integer, default=0, nullable=False)
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product")
