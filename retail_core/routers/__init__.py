# retail_core/routers/__init__.py

# Esto expone los módulos para que "from retail_core.routers import sales" funcione
from . import auth
from . import inventory
from . import sales
from . import layaways
from . import reports
