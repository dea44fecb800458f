"""
ENDPOINTS DE MENSAJERÍA DEL EXPEDIENTE.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api import serializers
from app.api.deps import resolve_case
from app.core.auth import get_authorizer
from app.core.database import get_db
from app.models.schemas import MensajeRequest
from app.services.access_control import Authorizer
from app.services.messages import MessageService

router = APIRouter(
    prefix="/mensajes",
    tags=["mensajes"],
)


@router.get("", summary="Hilo de mensajes")
def list_mensajes(
    expediente_id: Optional[str] = Query(default=None, alias="expedienteId"),
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    expediente = resolve_case(db, authz, expediente_id)
    mensajes = MessageService(db).thread(expediente, authz.user)
    return {"mensajes": [serializers.mensaje(m) for m in mensajes]}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Enviar mensaje")
def send_mensaje(
    payload: MensajeRequest,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    expediente = resolve_case(db, authz, payload.expediente_id, "No tienes un expediente activo")
    mensaje = MessageService(db).send(
        expediente,
        authz.user,
        payload.texto,
        destinatario=payload.destinatario,
        adjunto_nombre=payload.adjunto_nombre,
        adjunto_contenido=payload.adjunto_contenido,
    )
    return {"success": True, "mensaje": serializers.mensaje(mensaje)}
