"""
Plantillas de los emails transaccionales del portal.

Cada función devuelve un EmailTemplate (asunto, HTML y texto plano).
Los valores interpolados en HTML se escapan.
"""
from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Optional, Sequence

from app.core.config import get_settings

_STYLE = """
body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
.container { max-width: 600px; margin: 0 auto; padding: 20px; }
.header { background: #1e3a5f; color: white; padding: 24px; text-align: center; }
.content { padding: 30px; background: #f9fafb; }
.box { background: white; padding: 20px; border-left: 4px solid #1e3a5f; margin: 20px 0; }
.button { display: inline-block; padding: 12px 24px; background: #1e3a5f; color: white;
          text-decoration: none; border-radius: 6px; }
.footer { text-align: center; padding: 20px; font-size: 12px; color: #666; }
"""

PREVIEW_CHARS = 200


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html: str
    text: str


def _layout(titulo: str, cuerpo: str, subtitulo: Optional[str] = None) -> str:
    sub = f"<p>{escape(subtitulo)}</p>" if subtitulo else ""
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<style>{_STYLE}</style></head><body><div class=\"container\">"
        f"<div class=\"header\"><h1>{escape(titulo)}</h1>{sub}</div>"
        f"<div class=\"content\">{cuerpo}</div>"
        "<div class=\"footer\"><p>Deudas a Cero | info@deudasacero.com</p></div>"
        "</div></body></html>"
    )


def _button(texto: str) -> str:
    url = escape(get_settings().panel_url)
    return f'<p style="text-align:center;margin:30px 0;"><a href="{url}" class="button">{escape(texto)}</a></p>'


def _preview(texto: str) -> str:
    if len(texto) > PREVIEW_CHARS:
        return texto[:PREVIEW_CHARS] + "..."
    return texto


def welcome_template(nombre: str) -> EmailTemplate:
    panel = get_settings().panel_url
    cuerpo = (
        f"<h2>¡Hola {escape(nombre)}!</h2>"
        "<p>Te damos la bienvenida a <strong>Deudas a Cero</strong>, tu plataforma para "
        "iniciar el proceso de la Ley de Segunda Oportunidad.</p>"
        "<p>Desde tu panel podrás:</p><ul>"
        "<li>Ver el estado de tu expediente en tiempo real</li>"
        "<li>Subir la documentación necesaria</li>"
        "<li>Comunicarte directamente con tu abogado</li>"
        "<li>Seguir el progreso de cada fase del proceso</li></ul>"
        f"{_button('Acceder a mi panel')}"
        "<p><strong>Próximos pasos:</strong></p><ol>"
        "<li>Sube la documentación solicitada en la sección \"Documentos\"</li>"
        "<li>Revisa el checklist de documentos necesarios</li>"
        "<li>Si tienes dudas, usa el chat de mensajes</li></ol>"
    )
    texto = (
        f"¡Hola {nombre}!\n\n"
        "Te damos la bienvenida a Deudas a Cero, tu plataforma para iniciar el proceso "
        "de la Ley de Segunda Oportunidad.\n\n"
        f"Accede a tu panel: {panel}\n\n"
        "Próximos pasos:\n"
        "1. Sube la documentación solicitada en la sección \"Documentos\"\n"
        "2. Revisa el checklist de documentos necesarios\n"
        "3. Si tienes dudas, usa el chat de mensajes\n"
    )
    return EmailTemplate(
        subject="¡Bienvenido a Deudas a Cero! - Tu camino hacia la segunda oportunidad",
        html=_layout("Deudas a Cero", cuerpo, "Tu segunda oportunidad financiera empieza aquí"),
        text=texto,
    )


def phase_change_template(
    nombre: str,
    fase_anterior: int,
    fase_nueva: int,
    nombre_fase: str,
    descripcion_fase: str,
    referencia: str,
) -> EmailTemplate:
    panel = get_settings().panel_url
    cuerpo = (
        f"<h2>Hola {escape(nombre)}</h2>"
        "<p>Tu expediente ha pasado a una nueva fase:</p>"
        f"<div class=\"box\"><p>Fase anterior: {fase_anterior}</p>"
        f"<p><strong>Nueva fase: {fase_nueva} - {escape(nombre_fase)}</strong></p></div>"
        f"<p><strong>¿Qué significa?</strong></p><p>{escape(descripcion_fase)}</p>"
        f"{_button('Ver mi expediente')}"
    )
    texto = (
        f"Hola {nombre},\n\n"
        f"Tu expediente {referencia} ha avanzado a una nueva fase.\n\n"
        f"Fase anterior: {fase_anterior}\n"
        f"Nueva fase: {fase_nueva} - {nombre_fase}\n\n"
        f"{descripcion_fase}\n\n"
        f"Accede a tu panel para más detalles: {panel}\n"
    )
    return EmailTemplate(
        subject=f"Actualización de tu expediente {referencia} - Fase {fase_nueva}: {nombre_fase}",
        html=_layout("Tu expediente ha avanzado", cuerpo, f"Referencia: {referencia}"),
        text=texto,
    )


def new_message_template(
    nombre: str, remitente: str, texto_mensaje: str, referencia: Optional[str] = None
) -> EmailTemplate:
    panel = get_settings().panel_url
    preview = _preview(texto_mensaje)
    cuerpo = (
        f"<h2>Hola {escape(nombre)}</h2>"
        f"<p>Has recibido un nuevo mensaje de <strong>{escape(remitente)}</strong>:</p>"
        f"<div class=\"box\"><p>\"{escape(preview)}\"</p></div>"
        f"{_button('Responder mensaje')}"
    )
    texto = (
        f"Hola {nombre},\n\n"
        f"Has recibido un nuevo mensaje de {remitente}:\n\n"
        f"\"{preview}\"\n\n"
        f"Responde en: {panel}\n"
    )
    return EmailTemplate(
        subject=f"Nuevo mensaje de {remitente} - Deudas a Cero",
        html=_layout(
            "Tienes un nuevo mensaje",
            cuerpo,
            f"Expediente: {referencia}" if referencia else None,
        ),
        text=texto,
    )


def document_request_template(
    nombre: str, documentos: Sequence[str], referencia: str
) -> EmailTemplate:
    panel = get_settings().panel_url
    items = "".join(f"<li>{escape(d)}</li>" for d in documentos)
    cuerpo = (
        f"<h2>Hola {escape(nombre)}</h2>"
        "<p>Necesitamos que subas la siguiente documentación:</p>"
        f"<ul>{items}</ul>"
        "<p>Puedes subir los documentos directamente desde tu panel.</p>"
        f"{_button('Subir documentos')}"
    )
    lista = "\n".join(f"- {d}" for d in documentos)
    texto = (
        f"Hola {nombre},\n\n"
        f"Necesitamos que subas la siguiente documentación para tu expediente {referencia}:\n\n"
        f"{lista}\n\n"
        f"Sube los documentos en: {panel}\n"
    )
    return EmailTemplate(
        subject=f"Documentación pendiente - {referencia}",
        html=_layout("Documentación Pendiente", cuerpo, f"Expediente: {referencia}"),
        text=texto,
    )


def generic_template(subject: str, message: str, referencia: Optional[str] = None) -> EmailTemplate:
    """Email libre enviado por abogado/admin desde el panel."""
    parrafos = "".join(f"<p>{escape(p)}</p>" for p in message.split("\n") if p.strip())
    return EmailTemplate(
        subject=subject,
        html=_layout(subject, parrafos + _button("Acceder a mi panel"),
                     f"Expediente: {referencia}" if referencia else None),
        text=message,
    )
