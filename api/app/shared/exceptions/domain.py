"""
Excepciones relacionadas con la lógica de dominio.
"""
from typing import Any, Optional

from app.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class EntityNotFoundException(DomainException):
    """Excepción cuando no se encuentra una entidad."""

    def __init__(self, entity_name: str, entity_id: Any):
        super().__init__(
            message=f"{entity_name} con ID {entity_id} no encontrado",
            error_code="ENTITY_NOT_FOUND",
            details={"entity": entity_name, "id": str(entity_id)}
        )
        self.status_code = 404


class ValidationException(DomainException):
    """Excepción para errores de validación."""

    def __init__(self, message: str, field: str = None):
        details = {"field": field} if field else None
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details
        )


class BindingNotFoundException(DomainException):
    """Excepción cuando el usuario no tiene conectada la base de Notion pedida."""

    def __init__(self, label: str, domain_type: str, period: Optional[str] = None):
        details = {"domain_type": domain_type}
        if period:
            details["period"] = period
        super().__init__(
            message=f"Base de datos de {label} no conectada. Conéctala desde la configuración.",
            error_code="BINDING_NOT_FOUND",
            details=details
        )
        self.status_code = 404


class InvalidDomainException(DomainException):
    """Excepción cuando no se puede determinar o validar el dominio de una base."""

    def __init__(self, message: str, valid_values: list[str]):
        super().__init__(
            message=message,
            error_code="INVALID_DOMAIN",
            details={"valid_values": valid_values}
        )
