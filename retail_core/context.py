from dataclasses import dataclass
from typing import Optional

from retail_core.models import Role


@dataclass(frozen=True)
class Actor:
    """Quién ejecuta la operación. Se arma por petición y se pasa al núcleo."""
    id: Optional[int]
    username: str
    role: Role


# Para scripts y procesos internos sin usuario autenticado
SYSTEM_ACTOR = Actor(id=None, username="SISTEMA", role=Role.ADMIN)
