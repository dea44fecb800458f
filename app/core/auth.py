"""
Dependencias de autenticación y autorización para los routers.

El token de sesión se lee de la cookie httpOnly `session`; como alternativa
se acepta `Authorization: Bearer <token>` (clientes no navegador, tests).

No existe ningún bypass por entorno: sin token válido no hay usuario.
"""
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.exceptions import (
    AuthenticationException,
    InsufficientPermissionsException,
    SessionExpiredException,
)
from app.core.logger import get_logger
from app.core.security import SessionPayload, decode_session_token, now_epoch_ms
from app.models.user import Rol, Usuario
from app.services.access_control import Authorizer, authorizer_for

logger = get_logger()

security = HTTPBearer(auto_error=False)


# ==============================================================================
# SESIÓN
# ==============================================================================


def _extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    token = request.cookies.get(get_settings().session_cookie_name)
    if token:
        return token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


def check_lawyer_inactivity(payload: SessionPayload, now_ms: Optional[int] = None) -> None:
    """
    Caducidad de la sesión de abogado.

    La marca `ultimo_acceso` se fija en el login y no se renueva, así que
    el límite cuenta desde el login y no desde la última petición.

    Raises:
        SessionExpiredException: si han pasado más de N minutos
    """
    if payload.rol != Rol.ABOGADO.value:
        return

    minutes = get_settings().lawyer_inactivity_minutes
    now_ms = now_ms if now_ms is not None else now_epoch_ms()
    if now_ms - payload.ultimo_acceso > minutes * 60 * 1000:
        logger.info(
            "Sesión de abogado caducada",
            action="auth_session_expired",
            user_id=payload.user_id,
        )
        raise SessionExpiredException(minutes)


def get_session_payload(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> SessionPayload:
    """Token verificado de la petición (401 si falta o no es válido)."""
    token = _extract_token(request, credentials)
    if not token:
        raise AuthenticationException("No autorizado")

    payload = decode_session_token(token)
    check_lawyer_inactivity(payload)
    return payload


def get_current_user(
    payload: SessionPayload = Depends(get_session_payload),
    db: Session = Depends(get_db),
) -> Usuario:
    """
    Usuario autenticado.

    Raises:
        AuthenticationException 401: usuario inexistente o desactivado
    """
    user = db.query(Usuario).filter(Usuario.id == payload.user_id).first()

    if not user:
        raise AuthenticationException("Usuario no encontrado")

    if not user.activo:
        raise AuthenticationException("Usuario desactivado")

    return user


# ==============================================================================
# ROLES
# ==============================================================================


def require_roles(*roles: Rol) -> Callable[..., Usuario]:
    """
    Construye una dependencia que exige uno de los roles dados.

    Uso:
        user: Usuario = Depends(require_roles(Rol.ADMIN, Rol.ABOGADO))
    """
    allowed = {r.value for r in roles}

    def _dependency(user: Usuario = Depends(get_current_user)) -> Usuario:
        if user.rol not in allowed:
            logger.warning(
                "Rol insuficiente",
                action="access_denied_role",
                user_id=user.id,
                rol=user.rol,
                required=sorted(allowed),
            )
            raise InsufficientPermissionsException("No autorizado", required="/".join(sorted(allowed)))
        return user

    return _dependency


require_admin = require_roles(Rol.ADMIN)
require_abogado_or_admin = require_roles(Rol.ADMIN, Rol.ABOGADO)
require_cliente = require_roles(Rol.CLIENTE)


def get_authorizer(user: Usuario = Depends(get_current_user)) -> Authorizer:
    """Política de acceso a expedientes del usuario autenticado."""
    return authorizer_for(user)
