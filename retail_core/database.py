from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from retail_core.config import DATABASE_URL
from retail_core.errors import CoreError, PersistenceError
from retail_core.logs import get_logger

logger = get_logger(__name__)


def make_engine(url: str = DATABASE_URL):
    """
    Crea el engine. En SQLite cada transacción se abre con BEGIN IMMEDIATE:
    toma el candado de escritura desde la primera lectura, así dos cajas no
    pueden leer el mismo stock y vender la misma unidad.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    # check_same_thread=False es necesario solo para SQLite
    engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = make_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ESTA es la Base que todos los modelos deben usar
Base = declarative_base()


# Dependencia para obtener la DB en los endpoints
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Frontera atómica explícita. Las operaciones del núcleo solo hacen flush();
    aquí se confirma todo o nada.
    """
    try:
        yield db
        db.commit()
    except CoreError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Rollback por error de persistencia: %s", exc)
        raise PersistenceError("No se pudo confirmar la transacción") from exc
    except Exception:
        db.rollback()
        raise
