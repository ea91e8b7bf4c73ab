# retail_core/errors.py
"""
Errores del núcleo de inventario/ventas/apartados.

Todos se propagan al llamador sin modificar; los routers los traducen a
códigos HTTP en main.py.
"""


class CoreError(Exception):
    """Base de todos los errores de negocio del núcleo."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CoreError):
    """Entrada mal formada (cantidad negativa, método de pago desconocido...)."""

    status_code = 400


class ConflictError(CoreError):
    """Regla de negocio violada con entrada válida (stock, pagos, apartado cerrado)."""

    status_code = 409


class NotFoundError(CoreError):
    """Producto, venta o apartado inexistente."""

    status_code = 404


class PersistenceError(CoreError):
    """La transacción no pudo confirmarse. Se hizo rollback completo; se puede reintentar."""

    status_code = 503
