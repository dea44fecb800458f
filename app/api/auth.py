"""
Endpoints de autenticación.

La sesión es un JWT en la cookie httpOnly `session`; el logout solo borra
la cookie (no hay revocación en servidor).
"""
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.api import serializers
from app.core.auth import get_current_user
from app.core.config import get_settings
from app.core.database import get_db
from app.core.logger import get_logger
from app.core.security import (
    clear_session_cookie,
    create_session_token,
    limiter,
    set_session_cookie,
)
from app.models.expediente import EstadoExpediente, Expediente
from app.models.schemas import LoginRequest, RegistroRequest
from app.models.user import Rol, Usuario
from app.services.notifications import deliver_best_effort, send_welcome_email
from app.services.users import UserService

logger = get_logger()

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


def _open_session(response: Response, user: Usuario) -> None:
    token = create_session_token(
        user_id=user.id,
        email=user.email,
        nombre=user.nombre,
        rol=user.rol,
    )
    set_session_cookie(response, token)


@router.post("/login", summary="Iniciar sesión")
@limiter.limit(lambda: get_settings().login_rate_limit)
def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Verifica credenciales y abre sesión.

    401 `Credenciales incorrectas` tanto si el email no existe como si
    la contraseña no coincide o el usuario está desactivado.
    """
    user = UserService(db).authenticate(payload.email, payload.password)
    _open_session(response, user)
    return {"success": True, "user": serializers.session_user(user)}


@router.post("/logout", summary="Cerrar sesión")
def logout(response: Response):
    clear_session_cookie(response)
    return {"success": True}


@router.post("/registro", status_code=status.HTTP_201_CREATED, summary="Registro de cliente")
@limiter.limit(lambda: get_settings().login_rate_limit)
def registro(
    request: Request,
    response: Response,
    payload: RegistroRequest,
    db: Session = Depends(get_db),
):
    """Registro público: siempre crea un usuario con rol cliente."""
    user = UserService(db).register_client(
        payload.nombre,
        payload.email,
        payload.password,
        telefono=payload.telefono,
        nif=payload.nif,
    )
    _open_session(response, user)

    deliver_best_effort(send_welcome_email, user.email, user.nombre, action="welcome_email")
    return {"success": True, "user": serializers.session_user(user)}


@router.get("/me", summary="Usuario de la sesión")
def me(
    user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = serializers.user_profile(user)

    if user.rol == Rol.ABOGADO.value:
        data["expedientesAsignados"] = (
            db.query(Expediente)
            .filter(
                Expediente.abogado_asignado_id == user.id,
                Expediente.estado == EstadoExpediente.ACTIVO,
            )
            .count()
        )
    elif user.rol == Rol.CLIENTE.value:
        exp = user.expediente_cliente
        resumen = serializers.expediente_base(exp) if exp else None
        data["expedienteCliente"] = (
            {
                campo: resumen[campo]
                for campo in ("id", "referencia", "faseActual", "porcentajeAvance", "estado", "faseNombre")
            }
            if resumen
            else None
        )

    return {"user": data}
