"""
PDF de factura.

Si la factura trae un PDF subido (base64, con o sin prefijo `data:`), se
devuelve tal cual; si no, se renderiza con reportlab a partir de sus datos.
"""
from __future__ import annotations

import base64
import binascii
import html
import json
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.core.exceptions import ValidationException
from app.models.facturacion import Factura

EMISOR = "Deudas a Cero - Asesoría Ley de Segunda Oportunidad"


def decode_stored_content(contenido: Optional[str]) -> Optional[bytes]:
    """Base64 almacenado -> bytes. None si no hay contenido."""
    if not contenido:
        return None
    if contenido.startswith("data:") and "," in contenido:
        contenido = contenido.split(",", 1)[1]
    try:
        return base64.b64decode(contenido, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValidationException("El contenido de la factura no es base64 válido") from e


def _billing_party(factura: Factura) -> list[str]:
    usuario = factura.usuario
    if usuario is None:
        return []

    datos = {}
    if usuario.datos_facturacion:
        try:
            datos = json.loads(usuario.datos_facturacion)
        except json.JSONDecodeError:
            datos = {}

    lineas = [datos.get("nombre") or usuario.nombre]
    nif = datos.get("nif") or usuario.nif
    if nif:
        lineas.append(f"NIF: {nif}")
    direccion = datos.get("direccion") or usuario.direccion
    if direccion:
        lineas.append(direccion)
    cp_ciudad = " ".join(
        v for v in (datos.get("codigoPostal") or usuario.codigo_postal, datos.get("ciudad") or usuario.ciudad) if v
    )
    if cp_ciudad:
        lineas.append(cp_ciudad)
    lineas.append(usuario.email)
    return lineas


def build_invoice_pdf(factura: Factura) -> BytesIO:
    """Renderiza la factura en A4."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=2*cm,
        leftMargin=2*cm,
        topMargin=2*cm,
        bottomMargin=2*cm,
        title=f"Factura {factura.numero}",
    )

    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name='Right', parent=styles['Normal'], alignment=TA_RIGHT))
    styles.add(ParagraphStyle(name='Small', parent=styles['Normal'], fontSize=8, textColor=colors.grey))

    elements = [
        Paragraph(f"<b>FACTURA {html.escape(factura.numero)}</b>", styles['Title']),
        Paragraph(EMISOR, styles['Right']),
        Spacer(1, 0.8*cm),
    ]

    elements.append(Paragraph("<b>Facturar a:</b>", styles['Normal']))
    for linea in _billing_party(factura):
        elements.append(Paragraph(html.escape(linea), styles['Normal']))
    elements.append(Spacer(1, 0.8*cm))

    fechas = [
        ['Fecha de emisión', factura.fecha_emision.strftime('%d/%m/%Y')],
        [
            'Fecha de vencimiento',
            factura.fecha_vencimiento.strftime('%d/%m/%Y') if factura.fecha_vencimiento else '-',
        ],
        ['Estado', factura.estado.upper()],
    ]
    if factura.expediente is not None:
        fechas.append(['Expediente', factura.expediente.referencia])

    tabla_fechas = Table(fechas, colWidths=[6*cm, 11*cm])
    tabla_fechas.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(tabla_fechas)
    elements.append(Spacer(1, 0.8*cm))

    lineas = [
        ['Concepto', 'Importe'],
        [Paragraph(html.escape(factura.concepto), styles['Normal']), f"{factura.importe:,.2f} €"],
        ['TOTAL', f"{factura.importe:,.2f} €"],
    ]
    tabla = Table(lineas, colWidths=[13*cm, 4*cm])
    tabla.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1e3a5f')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
    ]))
    elements.append(tabla)

    if factura.notas:
        elements.append(Spacer(1, 0.8*cm))
        elements.append(Paragraph(f"<i>{html.escape(factura.notas)}</i>", styles['Normal']))

    elements.append(Spacer(1, 1.5*cm))
    elements.append(Paragraph(
        "Documento generado automáticamente por el portal Deudas a Cero.",
        styles['Small'],
    ))

    doc.build(elements)
    buffer.seek(0)
    return buffer
