"""
ENDPOINTS DE ADMINISTRACIÓN (solo rol admin).

Usuarios, abogados, alta de clientes con expediente, listado global
de expedientes y resumen de cobros pendientes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api import serializers
from app.core.auth import require_admin
from app.core.database import get_db
from app.core.exceptions import ValidationException
from app.models.expediente import Expediente
from app.models.schemas import ActualizarUsuarioRequest, CrearAbogadoRequest, CrearClienteRequest
from app.models.user import Rol, Usuario
from app.services.billing import BillingService
from app.services.onboarding import OnboardingService
from app.services.users import UserService

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


# =========================================================
# USUARIOS
# =========================================================

@router.get("/usuarios", summary="Listar usuarios")
def list_usuarios(
    rol: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    query = db.query(Usuario)
    if rol:
        if rol not in {r.value for r in Rol}:
            raise ValidationException("Rol inválido", field="rol")
        query = query.filter(Usuario.rol == rol)
    usuarios = query.order_by(Usuario.created_at.desc()).all()
    return {"usuarios": [serializers.admin_user(u) for u in usuarios]}


@router.post("/usuarios", status_code=status.HTTP_201_CREATED, summary="Alta de cliente")
def create_usuario(
    request: Request,
    payload: CrearClienteRequest,
    db: Session = Depends(get_db),
    admin: Usuario = Depends(require_admin),
):
    """
    Crea un cliente y, con `crearExpediente`, su expediente (fase 1, 5%)
    y la checklist de onboarding, todo en una transacción.
    """
    result = OnboardingService(db).create_client(payload, admin, request)
    return {
        "success": True,
        "usuario": serializers.user_profile(result.usuario),
        "expediente": (
            serializers.expediente_detalle(result.expediente, admin.rol)
            if result.expediente
            else None
        ),
    }


@router.patch("/usuarios/{usuario_id}", summary="Activar/desactivar usuario")
def update_usuario(
    usuario_id: str,
    payload: ActualizarUsuarioRequest,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    user = UserService(db).set_active(usuario_id, payload.activo)
    return {"success": True, "usuario": serializers.user_profile(user)}


@router.delete("/usuarios/{usuario_id}", summary="Eliminar usuario")
def delete_usuario(
    usuario_id: str,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    user = UserService(db).delete_user(usuario_id)
    return {"success": True, "message": f"Usuario {user.email} eliminado"}


# =========================================================
# ABOGADOS
# =========================================================

@router.get("/abogados", summary="Listar abogados")
def list_abogados(
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    abogados = (
        db.query(Usuario)
        .filter(Usuario.rol == Rol.ABOGADO.value)
        .order_by(Usuario.nombre)
        .all()
    )
    return {"abogados": [serializers.admin_user(a) for a in abogados]}


@router.post("/abogados", status_code=status.HTTP_201_CREATED, summary="Crear abogado")
def create_abogado(
    payload: CrearAbogadoRequest,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    abogado = UserService(db).create_lawyer(
        payload.nombre,
        payload.email,
        payload.password,
        telefono=payload.telefono,
        numero_colegiado=payload.numero_colegiado,
    )
    return {"success": True, "abogado": serializers.user_profile(abogado)}


# =========================================================
# EXPEDIENTES / COBROS
# =========================================================

@router.get("/expedientes", summary="Todos los expedientes")
def list_expedientes_admin(
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    expedientes = db.query(Expediente).order_by(Expediente.updated_at.desc()).all()
    return {"expedientes": [serializers.expediente_resumen(e) for e in expedientes]}


@router.get("/pagos-pendientes", summary="Cobros pendientes")
def pagos_pendientes(
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    resumen = BillingService(db).pending_summary()
    resumen["facturasPendientes"] = [
        serializers.factura(f) for f in resumen["facturasPendientes"]
    ]
    return resumen
