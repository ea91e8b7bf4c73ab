# retail_core/models/__init__.py

# 1. Base de datos (Origen de la clase declarativa)
from retail_core.database import Base

# 2. Usuarios y Roles
from .users import User, Role

# 3. Catálogo e Inventario
from .products import Product
from .inventory import StockMovement, MovementType, StockOnHand

# 4. Ventas y Pagos
from .sales import Sale, SaleLine, Payment, SaleStatus, PaymentMethod

# 5. Apartados
from .layaways import LayawayAccount, LayawayPayment, LayawayStatus
