"""
Helpers de auditoría.

Registran acciones sensibles sobre expedientes en la tabla audit_logs.
"""
import json
from typing import Optional, Tuple

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.logger import get_logger
from app.models.audit_log import AuditLog

logger = get_logger()


def log_audit(
    db: Session,
    usuario_id: Optional[str],
    accion: str,
    expediente_id: Optional[str] = None,
    descripcion: Optional[str] = None,
    datos: Optional[dict] = None,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
    commit: bool = False,
) -> AuditLog:
    """
    Registra una acción en la auditoría persistente.

    Por defecto NO hace commit: la entrada viaja en la misma transacción
    que la mutación que documenta.

    Args:
        db: Sesión de base de datos
        usuario_id: Usuario que realizó la acción
        accion: Tipo de acción ("cambiar_fase", "asignar_abogado", ...)
        expediente_id: Expediente afectado (opcional)
        descripcion: Texto legible
        datos: Diccionario con detalles adicionales (se guarda como JSON)
        ip: IP del cliente
        user_agent: User-Agent del cliente
        commit: Si True, hace commit inmediato

    Returns:
        AuditLog creado
    """
    entry = AuditLog(
        usuario_id=usuario_id,
        expediente_id=expediente_id,
        accion=accion,
        descripcion=descripcion,
        datos=json.dumps(datos, default=str, ensure_ascii=False) if datos else None,
        ip=ip,
        user_agent=user_agent,
    )
    db.add(entry)

    if commit:
        db.commit()
        db.refresh(entry)

    logger.info(
        "Entrada de auditoría",
        case_id=expediente_id,
        action=accion,
        user_id=usuario_id,
    )
    return entry


def request_origin(request: Optional[Request]) -> Tuple[str, str]:
    """
    IP y User-Agent del request.

    La IP se toma de x-forwarded-for (primer salto), x-real-ip o el socket.
    """
    if request is None:
        return "unknown", "unknown"

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.headers.get("x-real-ip") or (
            request.client.host if request.client else "unknown"
        )
    return ip, request.headers.get("user-agent", "unknown")
