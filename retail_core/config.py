# retail_core/config.py
import os
from decimal import Decimal


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "si", "on")


# Base de datos (SQLite por defecto, PostgreSQL en producción)
DATABASE_URL = os.getenv("RETAIL_DATABASE_URL", "sqlite:///./retail.db")

# Configuración JWT
SECRET_KEY = os.getenv("RETAIL_SECRET_KEY", "retail_core_secret_key_change_me_in_prod")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("RETAIL_TOKEN_EXPIRE_MINUTES", str(60 * 12)))

# Margen para comparar suma de pagos contra el total (redondeos)
PAYMENT_TOLERANCE = Decimal(os.getenv("RETAIL_PAYMENT_TOLERANCE", "0.5"))

# Saldo máximo pendiente con el que se puede cerrar un apartado
LAYAWAY_CLOSE_THRESHOLD = Decimal(os.getenv("RETAIL_LAYAWAY_CLOSE_THRESHOLD", "500"))

# Si es False, una salida que deje el stock en negativo se rechaza
ALLOW_NEGATIVE_STOCK = _env_bool("RETAIL_ALLOW_NEGATIVE_STOCK", False)

LOG_LEVEL = os.getenv("RETAIL_LOG_LEVEL", "INFO").upper()
