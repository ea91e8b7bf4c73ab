import re
from sqlalchemy.orm import Session
from retail_core.models import LayawayAccount

LAYAWAY_PREFIX = "AP-"


def get_next_layaway_code(db: Session, prefix: str = LAYAWAY_PREFIX) -> str:
    """
    Obtiene el siguiente código de apartado (AP-00001, AP-00002...).
    Toma el último apartado creado con el prefijo y suma 1.
    """
    last = db.query(LayawayAccount.code).filter(
        LayawayAccount.code.startswith(prefix)
    ).order_by(LayawayAccount.id.desc()).first()

    # Si no hay apartados, empezamos en 1
    next_number = 1
    if last:
        match = re.search(r"\d+$", last.code)
        if match:
            next_number = int(match.group(0)) + 1
    return f"{prefix}{next_number:05d}"
