"""
ENDPOINTS DE EMAIL MANUAL (abogado/admin).

El envío manual es el propósito de la petición, pero un fallo del
proveedor no se convierte en error HTTP: se responde con estado `fallido`
y queda registrado en la auditoría.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.api import serializers
from app.api.deps import load_case
from app.core.audit import log_audit, request_origin
from app.core.auth import get_authorizer, require_abogado_or_admin
from app.core.database import get_db, transaction
from app.core.exceptions import ValidationException
from app.models.audit_log import AuditLog
from app.models.expediente import Expediente
from app.models.schemas import EmailRequest
from app.models.user import Rol, Usuario
from app.services.access_control import Authorizer, authorizer_for
from app.services.notifications import (
    deliver_best_effort,
    send_document_request_email,
    send_generic_email,
)

router = APIRouter(
    prefix="/email",
    tags=["email"],
)

TIPO_SOLICITUD_DOCUMENTOS = "solicitud_documentos"
LIMITE_HISTORIAL = 50


def _pending_documents(expediente: Expediente) -> list[str]:
    return [
        item.nombre
        for item in expediente.checklist
        if item.obligatorio and not item.no_aplica and item.documento_id is None
    ]


@router.post("", summary="Enviar email")
def send_email_endpoint(
    request: Request,
    payload: EmailRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    """
    `tipo=solicitud_documentos` con expediente envía al cliente la lista de
    documentos obligatorios pendientes; cualquier otro tipo envía el mensaje libre.
    """
    expediente = None
    if payload.expediente_id:
        expediente = load_case(db, authorizer_for(user), payload.expediente_id)

    destinatario = payload.to or (expediente.cliente.email if expediente else None)
    referencia = expediente.referencia if expediente else None

    if payload.tipo == TIPO_SOLICITUD_DOCUMENTOS and expediente is not None:
        pendientes = _pending_documents(expediente)
        if not destinatario or not pendientes:
            raise ValidationException("No hay documentos pendientes que solicitar")
        subject = "Documentación pendiente"
        result = deliver_best_effort(
            send_document_request_email,
            destinatario,
            expediente.cliente.nombre,
            pendientes,
            referencia,
            case_id=expediente.id,
            action="document_request_email",
        )
    else:
        if not destinatario or not payload.subject or not payload.message:
            raise ValidationException("to, subject y message son requeridos")
        subject = payload.subject
        result = deliver_best_effort(
            send_generic_email,
            destinatario,
            subject,
            payload.message,
            referencia,
            case_id=expediente.id if expediente else None,
            action="manual_email",
        )

    if result is None:
        estado = "fallido"
    elif result.simulated:
        estado = "simulado"
    else:
        estado = "enviado"

    if expediente is not None:
        ip, user_agent = request_origin(request)
        with transaction(db):
            log_audit(
                db,
                usuario_id=user.id,
                accion="enviar_email",
                expediente_id=expediente.id,
                descripcion=f"Email enviado a {destinatario}: {subject}",
                datos={
                    "to": destinatario,
                    "subject": subject,
                    "tipo": payload.tipo,
                    "estado": estado,
                },
                ip=ip,
                user_agent=user_agent,
            )

    return {
        "message": "Email enviado" if estado != "fallido" else "No se pudo enviar el email",
        "email": {
            "to": destinatario,
            "subject": subject,
            "enviadoPor": user.nombre,
            "estado": estado,
        },
    }


@router.get("", summary="Historial de emails")
def list_emails(
    expediente_id: Optional[str] = Query(default=None, alias="expedienteId"),
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    if authz.rol == Rol.CLIENTE:
        return {"emails": []}

    query = db.query(AuditLog).filter(AuditLog.accion == "enviar_email")
    if expediente_id:
        query = query.filter(AuditLog.expediente_id == load_case(db, authz, expediente_id).id)
    elif not authz.is_admin:
        visibles = [e.id for e in authz.scope(db.query(Expediente)).all()]
        query = query.filter(AuditLog.expediente_id.in_(visibles))

    entries = query.order_by(AuditLog.created_at.desc()).limit(LIMITE_HISTORIAL).all()
    return {"emails": [serializers.audit_email(e) for e in entries]}
