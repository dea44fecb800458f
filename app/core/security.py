"""
Seguridad del portal.

Incluye:
- Hash de contraseñas (bcrypt)
- Token de sesión JWT firmado (cookie httpOnly `session`)
- Rate limiting de los endpoints públicos de autenticación

El token es autocontenido: no hay almacén de sesiones en servidor y el
logout solo borra la cookie en el cliente.
"""
from datetime import datetime, timedelta
from typing import Optional

import jwt
from fastapi import Response
from passlib.context import CryptContext
from pydantic import BaseModel, Field
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import get_settings
from app.core.exceptions import InvalidTokenException, MissingConfigException
from app.core.logger import get_logger

logger = get_logger()


# =========================================================
# CONFIGURACIÓN DE SEGURIDAD
# =========================================================

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled,
)

MIN_PASSWORD_LENGTH = 6


# =========================================================
# GESTIÓN DE PASSWORDS
# =========================================================


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# =========================================================
# TOKEN DE SESIÓN
# =========================================================


class SessionPayload(BaseModel):
    """Contenido firmado de la cookie de sesión."""

    user_id: str = Field(..., alias="userId")
    email: str
    nombre: str
    rol: str
    # Epoch en milisegundos, fijado en el login y nunca refrescado
    ultimo_acceso: int = Field(..., alias="ultimoAcceso")

    model_config = {"populate_by_name": True}


def _require_secret() -> str:
    secret = get_settings().jwt_secret
    if not secret:
        raise MissingConfigException("JWT_SECRET")
    return secret


def create_session_token(
    *,
    user_id: str,
    email: str,
    nombre: str,
    rol: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Crea el token de sesión.

    Args:
        user_id, email, nombre, rol: Identidad del usuario
        now: Instante del login (inyectable en tests)

    Returns:
        Token JWT firmado (HS256) con caducidad SESSION_EXPIRE_DAYS
    """
    settings = get_settings()
    now = now or datetime.utcnow()

    payload = SessionPayload(
        user_id=user_id,
        email=email,
        nombre=nombre,
        rol=rol,
        ultimo_acceso=int(now.timestamp() * 1000) if now.tzinfo else _epoch_ms(now),
    ).model_dump(by_alias=True)
    payload["exp"] = now + timedelta(days=settings.session_expire_days)
    payload["iat"] = now

    return jwt.encode(payload, _require_secret(), algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> SessionPayload:
    """
    Verifica firma y caducidad del token.

    Raises:
        InvalidTokenException: firma incorrecta, token caducado o mal formado
    """
    settings = get_settings()
    try:
        data = jwt.decode(token, _require_secret(), algorithms=[settings.jwt_algorithm])
        return SessionPayload.model_validate(data)
    except jwt.ExpiredSignatureError:
        logger.warning("Token de sesión caducado", action="auth_token_expired")
        raise InvalidTokenException("caducado")
    except jwt.InvalidTokenError as e:
        logger.warning("Token de sesión inválido", action="auth_token_error", reason=str(e))
        raise InvalidTokenException("firma no válida")
    except ValueError as e:
        logger.warning("Payload de sesión mal formado", action="auth_token_error", reason=str(e))
        raise InvalidTokenException("payload mal formado")


def _epoch_ms(naive_utc: datetime) -> int:
    return int((naive_utc - datetime(1970, 1, 1)).total_seconds() * 1000)


def now_epoch_ms() -> int:
    return _epoch_ms(datetime.utcnow())


# =========================================================
# COOKIE
# =========================================================


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_days * 24 * 3600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(key=settings.session_cookie_name, path="/")
