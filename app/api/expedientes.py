"""
ENDPOINTS DE EXPEDIENTES.

Las rutas no contienen lógica de negocio: resuelven el acceso por rol,
delegan en los servicios (CaseService, PhaseController) y serializan.

La fase solo cambia por PATCH /expedientes/{id}/fase.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api import serializers
from app.api.deps import load_case
from app.core.auth import get_authorizer, require_abogado_or_admin, require_admin
from app.core.database import get_db
from app.core.exceptions import CaseNotFoundException
from app.models.expediente import EstadoExpediente, Expediente
from app.models.schemas import (
    ActualizarExpedienteRequest,
    AsignarAbogadoRequest,
    CambioFaseRequest,
    CrearExpedienteRequest,
)
from app.models.user import Rol, Usuario
from app.services.access_control import Authorizer
from app.services.cases import CaseService
from app.services.phase_controller import PhaseController

router = APIRouter(tags=["expedientes"])


def _scoped_cases(db: Session, authz: Authorizer):
    return authz.scope(db.query(Expediente)).order_by(Expediente.updated_at.desc())


# =========================================================
# VISTA "MI EXPEDIENTE" / PANEL
# =========================================================

@router.get("/expediente", summary="Expediente(s) del usuario")
def get_expediente(
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    """
    - cliente: su expediente con totales y checklist (404 si no tiene)
    - abogado: sus expedientes asignados con totales
    - admin: todos los expedientes con totales
    """
    if authz.rol == Rol.CLIENTE:
        expediente = authz.user.expediente_cliente
        if expediente is None:
            raise CaseNotFoundException()
        return {"expediente": serializers.expediente_cliente(expediente)}

    expedientes = _scoped_cases(db, authz).all()
    return {"expedientes": [serializers.expediente_resumen(e) for e in expedientes]}


@router.patch("/expediente", summary="Actualizar campos descriptivos")
def patch_expediente(
    request: Request,
    payload: ActualizarExpedienteRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_admin),
):
    expediente = CaseService(db).update_case(payload, user, request)
    return {"success": True, "expediente": serializers.expediente_interno(expediente)}


# =========================================================
# LISTADO / ALTA / DETALLE
# =========================================================

@router.get("/expedientes", summary="Listar expedientes")
def list_expedientes(
    fase: Optional[int] = Query(default=None, ge=1, le=10),
    estado: Optional[str] = None,
    abogado_id: Optional[str] = Query(default=None, alias="abogadoId"),
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    query = _scoped_cases(db, authz)
    if fase is not None:
        query = query.filter(Expediente.fase_actual == fase)
    if estado:
        query = query.filter(Expediente.estado == estado)
    # Para el abogado el alcance ya fija su propio id
    if abogado_id and authz.is_admin:
        query = query.filter(Expediente.abogado_asignado_id == abogado_id)

    return {"expedientes": [serializers.expediente_resumen(e) for e in query.all()]}


@router.post("/expedientes", status_code=status.HTTP_201_CREATED, summary="Crear expediente")
def create_expediente(
    request: Request,
    payload: CrearExpedienteRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_admin),
):
    expediente = CaseService(db).create_case(payload, user, request)
    db.refresh(expediente)
    return {"success": True, "expediente": serializers.expediente_detalle(expediente, user.rol)}


@router.get("/expedientes/{expediente_id}", summary="Detalle de expediente")
def get_expediente_detalle(
    expediente_id: str,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    expediente = load_case(db, authz, expediente_id)
    if authz.rol == Rol.CLIENTE:
        return {"expediente": serializers.expediente_cliente(expediente)}
    return {"expediente": serializers.expediente_detalle(expediente, authz.user.rol)}


# =========================================================
# FASE / ASIGNACIÓN (ADMIN)
# =========================================================

@router.patch("/expedientes/{expediente_id}/fase", summary="Cambiar fase")
def cambiar_fase(
    expediente_id: str,
    request: Request,
    payload: CambioFaseRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_admin),
):
    """
    Fija la fase (1..10), recalcula el porcentaje y cierra en la fase 10.

    El email al cliente es de mejor esfuerzo: su fallo no afecta a la respuesta.
    """
    result = PhaseController(db).change_phase(expediente_id, payload.fase, user, request)
    return {
        "success": True,
        "message": result.message,
        "expediente": serializers.expediente_interno(result.expediente),
        "emailEnviado": result.email is not None,
    }


@router.patch("/expedientes/{expediente_id}/asignar", summary="Asignar abogado")
def asignar_abogado(
    expediente_id: str,
    request: Request,
    payload: AsignarAbogadoRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_admin),
):
    expediente = CaseService(db).assign_lawyer(expediente_id, payload.abogado_id, user, request)
    return {
        "success": True,
        "expediente": serializers.expediente_resumen(expediente),
    }


@router.get("/abogado/expedientes", summary="Expedientes del abogado")
def expedientes_abogado(
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    query = db.query(Expediente)
    if user.rol == Rol.ABOGADO.value:
        query = query.filter(
            Expediente.abogado_asignado_id == user.id,
            Expediente.estado == EstadoExpediente.ACTIVO,
        )
    expedientes = query.order_by(Expediente.updated_at.desc()).all()
    return {"expedientes": [serializers.expediente_resumen(e) for e in expedientes]}
