"""
Sistema de excepciones estandarizado para Deudas a Cero.

Todas las excepciones de negocio heredan de DeudasException y siguen
un formato consistente con:
- Código de error único (tipo de error legible por máquina)
- Mensaje descriptivo (en español, se muestra al usuario)
- Detalles adicionales (dict)
- Severity level
- Código HTTP con el que se expone en la API

El handler de app.main traduce cualquier DeudasException a
{"error": message, "code": code, "details": {...}}.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(str, Enum):
    """Niveles de severidad para errores."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DeudasException(Exception):
    """
    Excepción base del portal.

    Todas las excepciones custom deben heredar de esta clase.
    """

    http_status: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        original_error: Optional[Exception] = None
    ):
        """
        Args:
            code: Código único del error (ej: "CASE_NOT_FOUND")
            message: Mensaje descriptivo para humanos
            details: Detalles adicionales (dict)
            severity: Nivel de severidad
            original_error: Excepción original si es un wrap
        """
        self.code = code
        self.message = message
        self.details = details or {}
        self.severity = severity
        self.original_error = original_error

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción al cuerpo de respuesta de la API.

        Returns:
            Dict con error, code y details (si hay)
        """
        result: Dict[str, Any] = {
            "error": self.message,
            "code": self.code,
        }

        if self.details:
            result["details"] = self.details

        return result

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base


# =========================================================
# CONFIGURACIÓN
# =========================================================

class ConfigurationException(DeudasException):
    """Error de configuración del sistema."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            code="CONFIG_ERROR",
            message=message,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class MissingConfigException(ConfigurationException):
    """Variable de configuración requerida no encontrada."""

    def __init__(self, config_key: str, **kwargs):
        super().__init__(
            message=f"Variable de configuración requerida no encontrada: {config_key}",
            details={"config_key": config_key},
            **kwargs
        )


# =========================================================
# VALIDACIÓN Y REGLAS DE NEGOCIO (400)
# =========================================================

class ValidationException(DeudasException):
    """Entrada ausente o fuera de rango."""

    http_status = 400

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        if field:
            details["field"] = field

        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            details=details,
            severity=ErrorSeverity.LOW,
            **kwargs
        )


class BusinessRuleException(DeudasException):
    """Violación de regla de negocio comprobada antes de mutar (duplicados, roles)."""

    http_status = 400

    def __init__(self, message: str, rule: Optional[str] = None, **kwargs):
        super().__init__(
            code="BUSINESS_RULE",
            message=message,
            details={"rule": rule} if rule else None,
            severity=ErrorSeverity.LOW,
            **kwargs
        )


class DuplicateEmailException(BusinessRuleException):
    def __init__(self, email: str, message: str = "El email ya está registrado"):
        super().__init__(message, rule="email_unico")
        self.details["email"] = email


# =========================================================
# AUTENTICACIÓN Y AUTORIZACIÓN (401 / 403)
# =========================================================

class AuthenticationException(DeudasException):
    """Error de autenticación."""

    http_status = 401

    def __init__(self, message: str = "No autorizado", **kwargs):
        super().__init__(
            code="AUTH_ERROR",
            message=message,
            severity=ErrorSeverity.MEDIUM,
            **kwargs
        )


class InvalidTokenException(AuthenticationException):
    """Token de sesión inválido o caducado."""

    def __init__(self, reason: str = "firma no válida", **kwargs):
        super().__init__(
            message="Token inválido",
            details={"reason": reason},
            **kwargs
        )
        self.code = "INVALID_TOKEN"


class SessionExpiredException(AuthenticationException):
    """Sesión de abogado caducada por inactividad."""

    def __init__(self, minutes: int, **kwargs):
        super().__init__(
            message="Sesión expirada por inactividad",
            details={"timeout_minutes": minutes},
            **kwargs
        )
        self.code = "SESSION_EXPIRED"


class InsufficientPermissionsException(DeudasException):
    """Rol o propiedad insuficiente para la operación."""

    http_status = 403

    def __init__(self, message: str = "No autorizado", required: Optional[str] = None, **kwargs):
        super().__init__(
            code="FORBIDDEN",
            message=message,
            details={"required": required} if required else None,
            severity=ErrorSeverity.MEDIUM,
            **kwargs
        )


# =========================================================
# NO ENCONTRADO (404)
# =========================================================

class NotFoundException(DeudasException):
    """Entidad inexistente."""

    http_status = 404

    def __init__(self, message: str, entity: Optional[str] = None, entity_id: Optional[str] = None):
        details = {}
        if entity:
            details["entity"] = entity
        if entity_id:
            details["id"] = entity_id
        super().__init__(
            code="NOT_FOUND",
            message=message,
            details=details,
            severity=ErrorSeverity.LOW,
        )


class CaseNotFoundException(NotFoundException):
    def __init__(self, expediente_id: Optional[str] = None):
        super().__init__("Expediente no encontrado", entity="expediente", entity_id=expediente_id)
        self.code = "CASE_NOT_FOUND"


class UserNotFoundException(NotFoundException):
    def __init__(self, usuario_id: Optional[str] = None):
        super().__init__("Usuario no encontrado", entity="usuario", entity_id=usuario_id)
        self.code = "USER_NOT_FOUND"


class DocumentNotFoundException(NotFoundException):
    def __init__(self, documento_id: Optional[str] = None):
        super().__init__("Documento no encontrado", entity="documento", entity_id=documento_id)
        self.code = "DOCUMENT_NOT_FOUND"


class InvoiceNotFoundException(NotFoundException):
    def __init__(self, factura_id: Optional[str] = None):
        super().__init__("Factura no encontrada", entity="factura", entity_id=factura_id)
        self.code = "INVOICE_NOT_FOUND"


# =========================================================
# LLM (500 con detalles)
# =========================================================

class LLMException(DeudasException):
    """Error en la generación con IA (está en la ruta crítica del endpoint)."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        super().__init__(
            code="LLM_ERROR",
            message=message,
            **kwargs
        )


class LLMNotAvailableException(LLMException):
    """LLM no disponible (sin API key)."""

    def __init__(self, reason: str = "PERPLEXITY_API_KEY no está configurada", **kwargs):
        super().__init__(
            message="Servicio de IA no disponible",
            details={"reason": reason},
            **kwargs
        )
        self.code = "LLM_NOT_AVAILABLE"
