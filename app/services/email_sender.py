"""
Envío de email vía API HTTP de Resend.

Requisitos:
- RESEND_API_KEY configurada (sin ella el envío se simula en el log)
- MAIL_FROM con un remitente verificado en Resend
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import requests

from app.core.config import get_settings
from app.core.logger import get_logger

logger = get_logger()


class EmailSendError(RuntimeError):
    pass


@dataclass
class EmailResult:
    to: list[str]
    subject: str
    simulated: bool
    provider_id: Optional[str] = None


def send_email(
    *,
    to: Union[str, Sequence[str]],
    subject: str,
    html: str,
    text: Optional[str] = None,
    from_email: Optional[str] = None,
) -> EmailResult:
    """
    Envía un email.

    Raises:
        EmailSendError: destinatario vacío, error HTTP o respuesta no 2xx
    """
    settings = get_settings()
    recipients = [to] if isinstance(to, str) else list(to)
    recipients = [r for r in recipients if r]
    if not recipients:
        raise EmailSendError("Destinatario vacío")

    sender = from_email or settings.mail_from

    if not settings.email_configured:
        logger.info(
            "Email simulado (RESEND_API_KEY no configurada)",
            action="email_simulated",
            to=recipients,
            subject=subject,
            sender=sender,
        )
        return EmailResult(to=recipients, subject=subject, simulated=True)

    payload = {
        "from": sender,
        "to": recipients,
        "subject": subject,
        "html": html,
    }
    if text:
        payload["text"] = text

    try:
        response = requests.post(
            settings.resend_api_url,
            headers={
                "Authorization": f"Bearer {settings.resend_api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=settings.email_timeout_seconds,
        )
    except requests.RequestException as e:
        raise EmailSendError(f"Fallo enviando email: {e}")

    if response.status_code >= 300:
        raise EmailSendError(
            f"Resend respondió {response.status_code}: {response.text[:200]}"
        )

    provider_id = None
    try:
        provider_id = response.json().get("id")
    except ValueError:
        pass

    logger.info(
        "Email enviado",
        action="email_sent",
        to=recipients,
        subject=subject,
        provider_id=provider_id,
    )
    return EmailResult(to=recipients, subject=subject, simulated=False, provider_id=provider_id)
