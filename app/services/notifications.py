"""
Notificaciones por email del portal.

Todas son de mejor esfuerzo: se llaman después del commit de la operación
que las origina y un fallo se registra en el log sin propagarse.
"""
from typing import Optional, Sequence

from app.core.logger import get_logger
from app.services.email_sender import EmailResult, EmailSendError, send_email
from app.services.email_templates import (
    EmailTemplate,
    document_request_template,
    generic_template,
    new_message_template,
    phase_change_template,
    welcome_template,
)

logger = get_logger()


def _send(to: str, template: EmailTemplate) -> EmailResult:
    return send_email(to=to, subject=template.subject, html=template.html, text=template.text)


def send_welcome_email(to: str, nombre: str) -> EmailResult:
    return _send(to, welcome_template(nombre))


def send_phase_change_email(
    to: str,
    nombre: str,
    fase_anterior: int,
    fase_nueva: int,
    nombre_fase: str,
    descripcion_fase: str,
    referencia: str,
) -> EmailResult:
    return _send(
        to,
        phase_change_template(
            nombre, fase_anterior, fase_nueva, nombre_fase, descripcion_fase, referencia
        ),
    )


def send_new_message_email(
    to: str, nombre: str, remitente: str, texto: str, referencia: Optional[str] = None
) -> EmailResult:
    return _send(to, new_message_template(nombre, remitente, texto, referencia))


def send_document_request_email(
    to: str, nombre: str, documentos: Sequence[str], referencia: str
) -> EmailResult:
    return _send(to, document_request_template(nombre, documentos, referencia))


def send_generic_email(
    to: str, subject: str, message: str, referencia: Optional[str] = None
) -> EmailResult:
    return _send(to, generic_template(subject, message, referencia))


def deliver_best_effort(
    send, *args, case_id: Optional[str] = None, action: str = "email", **kwargs
) -> Optional[EmailResult]:
    """
    Ejecuta un envío sin dejar que su fallo afecte a la operación principal.

    Returns:
        EmailResult o None si el envío falló
    """
    try:
        return send(*args, **kwargs)
    except EmailSendError as e:
        logger.warning(
            "Email no enviado",
            case_id=case_id,
            action=f"{action}_failed",
            reason=str(e),
        )
        return None
    except Exception as e:
        logger.error(
            "Fallo en notificación por email",
            case_id=case_id,
            action=f"{action}_failed",
            error=e,
        )
        return None
