"""
Control de acceso por rol sobre expedientes.

Cada rol tiene un Authorizer que sabe:
- `scope(query)`: filtrar cualquier consulta que incluya Expediente
- `can_access(expediente)`: decidir sobre un expediente concreto

Matriz:
- admin: ve todos los expedientes
- abogado: solo los que tiene asignados (abogado_asignado_id == su id)
- cliente: solo el suyo (cliente_id == su id)

Los documentos heredan el alcance de su expediente (el cliente no ve los
judiciales). Las facturas siguen la misma matriz, salvo que el cliente las ve por
`usuario_id` (pueden no estar ligadas a un expediente).

Pedir por id un expediente existente fuera del alcance es 403, nunca 404.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.orm import Query

from app.core.exceptions import InsufficientPermissionsException
from app.core.logger import get_logger
from app.models.documento import Documento
from app.models.expediente import Expediente
from app.models.facturacion import Factura
from app.models.user import Rol, Usuario

logger = get_logger()


class Authorizer(ABC):
    """Política de visibilidad de expedientes para un usuario."""

    rol: Rol

    def __init__(self, user: Usuario):
        self.user = user

    @abstractmethod
    def scope(self, query: Query) -> Query:
        """Restringe una consulta (que ya incluye Expediente) al alcance del rol."""

    @abstractmethod
    def can_access(self, expediente: Expediente) -> bool:
        """¿Puede el usuario ver/operar este expediente?"""

    def ensure_access(self, expediente: Expediente) -> Expediente:
        """
        Devuelve el expediente si es accesible.

        Raises:
            InsufficientPermissionsException: expediente fuera de alcance (403)
        """
        if not self.can_access(expediente):
            logger.warning(
                "Acceso denegado a expediente",
                case_id=expediente.id,
                action="access_denied_case",
                user_id=self.user.id,
                rol=self.user.rol,
            )
            raise InsufficientPermissionsException("No autorizado", required="acceso_expediente")
        return expediente

    # Facturas: entidad ligada a un usuario y opcionalmente a un expediente

    @abstractmethod
    def scope_invoices(self, query: Query) -> Query:
        """Restringe una consulta sobre Factura."""

    @abstractmethod
    def can_access_invoice(self, factura: Factura) -> bool:
        """¿Puede el usuario ver esta factura?"""

    def ensure_invoice_access(self, factura: Factura) -> Factura:
        if not self.can_access_invoice(factura):
            logger.warning(
                "Acceso denegado a factura",
                action="access_denied_invoice",
                user_id=self.user.id,
                factura_id=factura.id,
            )
            raise InsufficientPermissionsException("No autorizado", required="acceso_factura")
        return factura

    # Documentos: heredan el alcance de su expediente

    def can_access_document(self, documento: Documento) -> bool:
        if documento.expediente is None:
            # Generados sin expediente: solo quien los creó (o el admin)
            return documento.subido_por_id == self.user.id
        return self.can_access(documento.expediente)

    def ensure_document_access(self, documento: Documento) -> Documento:
        if not self.can_access_document(documento):
            logger.warning(
                "Acceso denegado a documento",
                case_id=documento.expediente_id,
                action="access_denied_document",
                user_id=self.user.id,
                documento_id=documento.id,
            )
            raise InsufficientPermissionsException("No autorizado", required="acceso_documento")
        return documento

    @property
    def is_admin(self) -> bool:
        return False


class AdminAuthorizer(Authorizer):
    rol = Rol.ADMIN

    def scope(self, query: Query) -> Query:
        return query

    def can_access(self, expediente: Expediente) -> bool:
        return True

    def scope_invoices(self, query: Query) -> Query:
        return query

    def can_access_invoice(self, factura: Factura) -> bool:
        return True

    def can_access_document(self, documento: Documento) -> bool:
        return True

    @property
    def is_admin(self) -> bool:
        return True


class LawyerAuthorizer(Authorizer):
    rol = Rol.ABOGADO

    def scope(self, query: Query) -> Query:
        return query.filter(Expediente.abogado_asignado_id == self.user.id)

    def can_access(self, expediente: Expediente) -> bool:
        return expediente.abogado_asignado_id == self.user.id

    def scope_invoices(self, query: Query) -> Query:
        return query.join(Expediente, Factura.expediente_id == Expediente.id).filter(
            Expediente.abogado_asignado_id == self.user.id
        )

    def can_access_invoice(self, factura: Factura) -> bool:
        # Sin expediente no hay abogado responsable
        return factura.expediente is not None and self.can_access(factura.expediente)


class ClientAuthorizer(Authorizer):
    rol = Rol.CLIENTE

    def scope(self, query: Query) -> Query:
        return query.filter(Expediente.cliente_id == self.user.id)

    def can_access(self, expediente: Expediente) -> bool:
        return expediente.cliente_id == self.user.id

    def scope_invoices(self, query: Query) -> Query:
        return query.filter(Factura.usuario_id == self.user.id)

    def can_access_invoice(self, factura: Factura) -> bool:
        return factura.usuario_id == self.user.id

    def can_access_document(self, documento: Documento) -> bool:
        # Los documentos judiciales no se muestran al cliente
        return not documento.es_judicial and super().can_access_document(documento)


_AUTHORIZERS: dict[Rol, type[Authorizer]] = {
    Rol.ADMIN: AdminAuthorizer,
    Rol.ABOGADO: LawyerAuthorizer,
    Rol.CLIENTE: ClientAuthorizer,
}


def authorizer_for(user: Usuario) -> Authorizer:
    """Authorizer correspondiente al rol del usuario."""
    try:
        rol = Rol(user.rol)
    except ValueError:
        raise InsufficientPermissionsException("Rol desconocido", required="rol_valido")
    return _AUTHORIZERS[rol](user)


def client_case(user: Usuario) -> Optional[Expediente]:
    """Expediente propio de un cliente (la vista "mi expediente" no usa id)."""
    return user.expediente_cliente
