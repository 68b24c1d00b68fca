"""
Excepciones de la API.

Los errores de dominio son HTTPException (4xx con mensaje seguro).
Los errores de infraestructura (base de datos, sistema de archivos) no lo son:
se registran con traza completa y se responden como 500 genérico.
"""

from fastapi import HTTPException, status


class CredentialsException(HTTPException):
    """Error de credenciales inválidas (401)."""

    def __init__(self, detail: str = "Credenciales inválidas"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(HTTPException):
    """Error de permisos insuficientes (403)."""

    def __init__(self, detail: str = "No tiene permisos para realizar esta acción"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class NotFoundException(HTTPException):
    """Recurso no encontrado (404)."""

    def __init__(self, resource: str = "Recurso", detail: str | None = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource} no encontrado",
        )


class ConflictException(HTTPException):
    """Conflicto de datos (409): duplicados o transición de estado inválida."""

    def __init__(self, detail: str = "El recurso ya existe"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class ValidationException(HTTPException):
    """Error de validación de negocio (422)."""

    def __init__(self, detail: str = "Error de validación"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


# ── Infraestructura ──────────────────────────────────

class InfrastructureException(Exception):
    """Fallo de infraestructura. Nunca se expone el detalle al cliente."""

    public_message = "Error interno del servidor"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QueryException(InfrastructureException):
    """Error al consultar el almacén. La causa original queda en __cause__."""

    public_message = "Error al consultar los registros"


class ExportException(InfrastructureException):
    """Error de sistema de archivos o compresión durante una exportación."""

    public_message = "Error al exportar los registros"
