"""
Helpers compartidos por los routers para resolver expedientes con control de acceso.
"""
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import CaseNotFoundException, ValidationException
from app.models.expediente import Expediente
from app.models.user import Rol
from app.services.access_control import Authorizer


def load_case(db: Session, authz: Authorizer, expediente_id: Optional[str]) -> Expediente:
    """
    Expediente por id con control de acceso.

    404 si no existe; 403 si existe pero está fuera del alcance del rol.
    """
    if not expediente_id:
        raise ValidationException("expedienteId es requerido", field="expedienteId")
    expediente = db.get(Expediente, expediente_id)
    if expediente is None:
        raise CaseNotFoundException(expediente_id)
    return authz.ensure_access(expediente)


def resolve_case(
    db: Session,
    authz: Authorizer,
    expediente_id: Optional[str],
    mensaje_sin_expediente: Optional[str] = None,
) -> Expediente:
    """
    El cliente siempre opera sobre su propio expediente (ignora el id);
    abogado y admin indican el expediente explícitamente.

    Un cliente sin expediente recibe 404, o 400 con `mensaje_sin_expediente`
    en las operaciones de escritura.
    """
    if authz.rol == Rol.CLIENTE:
        expediente = authz.user.expediente_cliente
        if expediente is None:
            if mensaje_sin_expediente:
                raise ValidationException(mensaje_sin_expediente)
            raise CaseNotFoundException()
        return expediente
    return load_case(db, authz, expediente_id)
