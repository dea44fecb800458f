"""
Modelos ORM del portal.

Se importan todos aquí para que las relaciones por nombre se resuelvan
y `Base.metadata` contenga todas las tablas.
"""
from app.models.audit_log import AuditLog
from app.models.documento import Documento
from app.models.expediente import ChecklistDocumento, Deuda, Expediente
from app.models.facturacion import Factura, Facturacion, Pago
from app.models.faq import FAQ
from app.models.firma import Firma
from app.models.mensaje import Mensaje
from app.models.user import Rol, Usuario

__all__ = [
    "AuditLog",
    "ChecklistDocumento",
    "Deuda",
    "Documento",
    "Expediente",
    "FAQ",
    "Factura",
    "Facturacion",
    "Firma",
    "Mensaje",
    "Pago",
    "Rol",
    "Usuario",
]
