# retail_core/models/products.py
from sqlalchemy import Column, Integer, String, Boolean, Numeric
from retail_core.database import Base


class Product(Base):
    """
    Catálogo (colaborador externo). El núcleo solo lee precio y costo;
    el costo promedio se actualiza con cada entrada de mercancía.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, index=True, nullable=False)
    category = Column(String, nullable=True)

    price = Column(Numeric(12, 2), nullable=False, default=0)  # Precio de venta
    cost = Column(Numeric(12, 2), nullable=False, default=0)   # Costo promedio

    is_active = Column(Boolean, default=True)
