import os
import tempfile

# retail_core.main crea tablas al importarse: que no toque la base real
os.environ.setdefault(
    "RETAIL_DATABASE_URL",
    "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="retail_core_"), "import.db"),
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import retail_core.models  # noqa: F401  registra las tablas
from retail_core.context import Actor
from retail_core.crud.products import create_product
from retail_core.database import Base, get_db, make_engine, transaction
from retail_core.models import Role
from retail_core.services import ledger


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def admin():
    return Actor(id=None, username="admin", role=Role.ADMIN)


@pytest.fixture
def cashier():
    return Actor(id=None, username="cajero1", role=Role.EMPLOYEE)


@pytest.fixture
def make_product(db, admin):
    """Crea un producto (y su stock inicial por kardex). Devuelve el id."""
    counter = {"n": 0}

    def _make(price=5000, cost=1000, stock=0, sku=None):
        counter["n"] += 1
        with transaction(db):
            product = create_product(db, sku or f"PRD-{counter['n']:05d}", f"Producto {counter['n']}", price)
            if stock:
                ledger.stock_in(db, admin, product.id, stock, cost)
            product_id = product.id
        return product_id

    return _make


@pytest.fixture
def client(session_factory, admin):
    """
    TestClient con la base temporal. El actor se cambia con client.actor = ...
    """
    from retail_core.main import app
    from retail_core.security import get_current_actor

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    test_client = TestClient(app)
    test_client.actor = admin
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = lambda: test_client.actor
    yield test_client
    app.dependency_overrides.clear()
