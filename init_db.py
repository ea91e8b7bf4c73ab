from retail_core.database import SessionLocal, engine, transaction
# Los modelos se importan desde retail_core.models (usando el __init__.py)
from retail_core.models import Base, User, Role
from retail_core.context import SYSTEM_ACTOR
from retail_core.crud.products import create_product, get_product_by_sku
from retail_core.crud.users import create_user
from retail_core.services import ledger


def init_db():
    print("--- Creando Tablas ---")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    print("--- Iniciando Poblado ---")

    # 1. USUARIOS
    users_to_create = [
        ("admin", "1234", Role.ADMIN),
        ("cajero1", "0000", Role.EMPLOYEE),
        ("cajero2", "1111", Role.EMPLOYEE),
    ]

    with transaction(db):
        for uname, pin, role in users_to_create:
            if not db.query(User).filter(User.username == uname).first():
                create_user(db, uname, pin, role)
                print(f"✅ Usuario '{uname}' creado.")

    # 2. PRODUCTOS (el stock inicial entra por kardex)
    products_list = [
        ("CON-00001", "Consola PS5 Slim", "CONSOLAS", 2600000, 2100000, 3),
        ("CTR-00001", "Control DualSense", "CONTROLES", 320000, 240000, 10),
        ("JUE-00001", "Juego EA FC 25", "JUEGOS", 250000, 180000, 15),
        ("CAB-00001", "Cable HDMI 2.1", "CABLES", 35000, 15000, 40),
        ("PAP-00001", "Resma Carta", "PAPELERIA", 22000, 16000, 25),
    ]

    count = 0
    with transaction(db):
        for sku, name, category, price, cost, initial_stock in products_list:
            if get_product_by_sku(db, sku):
                continue
            product = create_product(db, sku, name, price, category=category)
            ledger.stock_in(db, SYSTEM_ACTOR, product.id, initial_stock, cost, reference="INVENTARIO INICIAL")
            count += 1

    print(f"✅ {count} Productos creados.")
    db.close()


if __name__ == "__main__":
    init_db()
