from decimal import Decimal
from sqlalchemy.orm import Session
from retail_core.models import Product, StockOnHand


def create_product(db: Session, sku: str, name: str, price, cost=0, category: str = None):
    """
    Alta mínima de catálogo: Producto -> Saldo en 0.
    El stock inicial entra siempre por el kardex (ledger.stock_in).
    """
    # 1. Crear el producto
    db_product = Product(
        sku=sku.strip().upper(),
        name=name.strip().upper(),
        category=category.strip().upper() if category else None,
        price=Decimal(str(price)),
        cost=Decimal(str(cost)),
    )
    db.add(db_product)
    db.flush()  # Para obtener el ID del producto

    # 2. Inicializar saldo en 0
    db.add(StockOnHand(product_id=db_product.id, qty_on_hand=0))
    db.flush()
    return db_product


def get_product_by_sku(db: Session, sku: str):
    return db.query(Product).filter(Product.sku == sku.strip().upper()).first()
