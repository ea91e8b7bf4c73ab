from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from retail_core.database import engine
from retail_core.errors import CoreError, PersistenceError
from retail_core.logs import get_logger
from retail_core.models import Base
from retail_core.routers import auth, inventory, sales, layaways, reports

logger = get_logger(__name__)

# 1. CREACIÓN AUTOMÁTICA DE TABLAS
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Retail Core POS",
    description="Kardex de inventario, ventas con pagos mixtos y apartados",
    version="2.0.0"
)

# 2. CONFIGURACIÓN DE CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 3. REGISTRO DE ROUTERS (BACKEND API)
app.include_router(auth.router, prefix="/api/auth", tags=["🔑 Autenticación"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["🔄 Inventario & Kardex"])
app.include_router(sales.router, prefix="/api/sales", tags=["🛒 Ventas POS"])
app.include_router(layaways.router, prefix="/api/layaways", tags=["📦 Apartados"])
app.include_router(reports.router, prefix="/api/reports", tags=["📊 Reportes"])


@app.get("/health")
def health():
    return {"ok": True}


# --- 4. MANEJO DE ERRORES ---
# ValidationError -> 400, NotFoundError -> 404, ConflictError -> 409, PersistenceError -> 503
@app.exception_handler(CoreError)
async def core_error_handler(request: Request, exc: CoreError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Lecturas fuera de transaction(db) (p. ej. base bloqueada): mismo 503
@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    error = PersistenceError("Base de datos no disponible")
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})
