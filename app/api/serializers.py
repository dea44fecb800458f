"""
Serialización de entidades a JSON camelCase (contrato del panel web).

Las rutas devuelven dicts construidos aquí; el contenido base64 de
documentos solo se incluye cuando se pide de forma explícita.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from app.legal.fases import fase_info
from app.models.audit_log import AuditLog
from app.models.documento import Documento
from app.models.expediente import ChecklistDocumento, Deuda, Expediente
from app.models.facturacion import Factura, Facturacion, Pago
from app.models.faq import FAQ
from app.models.firma import Firma
from app.models.mensaje import Mensaje
from app.models.user import Usuario

# Estimación comercial de deuda exonerable
FACTOR_EXONERACION = 0.85


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# =========================================================
# USUARIOS
# =========================================================

def user_brief(user: Optional[Usuario]) -> Optional[dict]:
    if user is None:
        return None
    return {"id": user.id, "nombre": user.nombre, "email": user.email}


def session_user(user: Usuario) -> dict:
    return {"id": user.id, "email": user.email, "nombre": user.nombre, "rol": user.rol}


def user_profile(user: Usuario) -> dict:
    datos_facturacion = None
    if user.datos_facturacion:
        try:
            datos_facturacion = json.loads(user.datos_facturacion)
        except json.JSONDecodeError:
            datos_facturacion = None

    return {
        "id": user.id,
        "email": user.email,
        "nombre": user.nombre,
        "telefono": user.telefono,
        "nif": user.nif,
        "rol": user.rol,
        "activo": user.activo,
        "ultimoAcceso": _iso(user.ultimo_acceso),
        "direccion": user.direccion,
        "codigoPostal": user.codigo_postal,
        "ciudad": user.ciudad,
        "numeroColegiado": user.numero_colegiado,
        "datosFacturacion": datos_facturacion,
        "createdAt": _iso(user.created_at),
    }


def admin_user(user: Usuario) -> dict:
    data = user_profile(user)
    data["count"] = {
        "expedientesCliente": 1 if user.expediente_cliente is not None else 0,
        "expedientesAbogado": len(user.expedientes_asignados),
    }
    return data


# =========================================================
# EXPEDIENTES
# =========================================================

def deuda(d: Deuda) -> dict:
    return {
        "id": d.id,
        "tipo": d.tipo,
        "importe": d.importe,
        "descripcion": d.descripcion,
        "acreedor": d.acreedor,
    }


def checklist_item(item: ChecklistDocumento) -> dict:
    return {
        "id": item.id,
        "nombre": item.nombre,
        "orden": item.orden,
        "obligatorio": item.obligatorio,
        "noAplica": item.no_aplica,
        "documentoId": item.documento_id,
        "completado": item.documento_id is not None,
    }


def fase_detalle(numero: int) -> Optional[dict]:
    info = fase_info(numero)
    if info is None:
        return None
    return {
        "numero": info.numero,
        "nombre": info.nombre,
        "descripcion": info.descripcion,
        "duracion": info.duracion,
    }


def expediente_base(exp: Expediente) -> dict:
    info = fase_info(exp.fase_actual)
    return {
        "id": exp.id,
        "referencia": exp.referencia,
        "clienteId": exp.cliente_id,
        "abogadoAsignadoId": exp.abogado_asignado_id,
        "juzgado": exp.juzgado,
        "tipoProcedimiento": exp.tipo_procedimiento,
        "faseActual": exp.fase_actual,
        "faseNombre": info.nombre if info else None,
        "porcentajeAvance": exp.porcentaje_avance,
        "estado": exp.estado,
        "fechaPresentacion": _iso(exp.fecha_presentacion),
        "fechaCierre": _iso(exp.fecha_cierre),
        "situacionLaboral": exp.situacion_laboral,
        "buenaFe": exp.buena_fe,
        "sinAntecedentes": exp.sin_antecedentes,
        "estadoCivil": exp.estado_civil,
        "numeroHijos": exp.numero_hijos,
        "createdAt": _iso(exp.created_at),
        "updatedAt": _iso(exp.updated_at),
    }


def expediente_interno(exp: Expediente) -> dict:
    """Vista de abogado/admin: añade las notas internas."""
    data = expediente_base(exp)
    data["notasInternas"] = exp.notas_internas
    return data


def expediente_resumen(exp: Expediente) -> dict:
    """Fila de listado con totales calculados."""
    data = expediente_interno(exp)
    data.update(
        {
            "cliente": user_brief(exp.cliente),
            "abogado": user_brief(exp.abogado),
            "deudaTotal": exp.deuda_total,
            "documentosPendientes": sum(1 for d in exp.documentos if d.estado == "pendiente"),
            "mensajesNuevos": sum(
                1 for m in exp.mensajes if not m.leido and m.remitente == "cliente"
            ),
        }
    )
    return data


def expediente_cliente(exp: Expediente) -> dict:
    """Vista "mi expediente" del cliente, sin notas internas ni documentos judiciales."""
    deuda_total = exp.deuda_total
    deuda_publica = sum(d.importe for d in exp.deudas if d.tipo == "publica")
    deuda_financiera = sum(d.importe for d in exp.deudas if d.tipo == "financiera")

    data = expediente_base(exp)
    data.update(
        {
            "cliente": user_brief(exp.cliente),
            "abogado": {"nombre": exp.abogado.nombre} if exp.abogado else None,
            "deudas": [deuda(d) for d in exp.deudas],
            "documentos": [documento(d) for d in exp.documentos if not d.es_judicial],
            "mensajes": [mensaje(m) for m in exp.mensajes[-5:]],
            "checklist": [checklist_item(i) for i in exp.checklist],
            "deudaTotal": deuda_total,
            "deudaPublica": deuda_publica,
            "deudaFinanciera": deuda_financiera,
            "estimacionExoneracion": deuda_total * FACTOR_EXONERACION,
            "fase": fase_detalle(exp.fase_actual),
        }
    )
    return data


def expediente_detalle(exp: Expediente, rol_lector: str) -> dict:
    data = expediente_interno(exp)
    data.update(
        {
            "cliente": user_brief(exp.cliente),
            "abogado": user_brief(exp.abogado),
            "deudas": [deuda(d) for d in exp.deudas],
            "documentos": [documento(d) for d in exp.documentos],
            "checklist": [checklist_item(i) for i in exp.checklist],
            "facturacion": facturacion(exp.facturacion) if exp.facturacion else None,
            "mensajes": [mensaje(m) for m in exp.mensajes],
            "deudaTotal": exp.deuda_total,
            "documentosPendientes": sum(
                1 for d in exp.documentos if d.estado in ("pendiente", "subido")
            ),
            "mensajesNuevos": sum(
                1 for m in exp.mensajes if not m.leido and m.remitente != rol_lector
            ),
            "fase": fase_detalle(exp.fase_actual),
        }
    )
    return data


# =========================================================
# DOCUMENTOS / MENSAJES / FIRMAS
# =========================================================

def documento(doc: Documento, con_contenido: bool = False) -> dict:
    data = {
        "id": doc.id,
        "expedienteId": doc.expediente_id,
        "nombre": doc.nombre,
        "tipo": doc.tipo,
        "estado": doc.estado,
        "fase": doc.fase,
        "fechaSubida": _iso(doc.fecha_subida),
        "subidoPorId": doc.subido_por_id,
        "nombreArchivo": doc.nombre_archivo,
        "notas": doc.notas,
        "esJudicial": doc.es_judicial,
        "tieneContenido": bool(doc.contenido),
        "createdAt": _iso(doc.created_at),
    }
    if con_contenido:
        data["contenido"] = doc.contenido
    return data


def mensaje(m: Mensaje) -> dict:
    return {
        "id": m.id,
        "expedienteId": m.expediente_id,
        "usuarioId": m.usuario_id,
        "remitente": m.remitente,
        "remitenteNombre": m.usuario.nombre if m.usuario else None,
        "destinatario": m.destinatario,
        "texto": m.texto,
        "adjuntoNombre": m.adjunto_nombre,
        "adjuntoContenido": m.adjunto_contenido,
        "fechaEnvio": _iso(m.fecha_envio),
        "leido": m.leido,
    }


def firma(f: Firma) -> dict:
    return {
        "id": f.id,
        "expedienteId": f.expediente_id,
        "usuarioId": f.usuario_id,
        "usuario": user_brief(f.usuario),
        "tipo": f.tipo,
        "documento": f.documento,
        "ip": f.ip,
        "verificado": f.verificado,
        "fechaFirma": _iso(f.fecha_firma),
    }


# =========================================================
# FACTURACIÓN
# =========================================================

def pago(p: Pago, con_expediente: bool = False) -> dict:
    data = {
        "id": p.id,
        "facturacionId": p.facturacion_id,
        "concepto": p.concepto,
        "importe": p.importe,
        "estado": p.estado,
        "fechaVencimiento": _iso(p.fecha_vencimiento),
        "fechaPago": _iso(p.fecha_pago),
        "metodoPago": p.metodo_pago,
        "notas": p.notas,
        "createdAt": _iso(p.created_at),
    }
    if con_expediente and p.facturacion is not None:
        exp = p.facturacion.expediente
        data["expediente"] = {"id": exp.id, "referencia": exp.referencia} if exp else None
    return data


def facturacion(f: Facturacion) -> dict:
    return {
        "id": f.id,
        "expedienteId": f.expediente_id,
        "importePresupuestado": f.importe_presupuestado,
        "importeFacturado": f.importe_facturado,
        "importePendiente": max(0.0, f.importe_presupuestado - f.importe_facturado),
        "estado": f.estado,
        "metodoPago": f.metodo_pago,
        "notas": f.notas,
        "pagos": [pago(p) for p in f.pagos],
        "createdAt": _iso(f.created_at),
        "updatedAt": _iso(f.updated_at),
    }


def factura(f: Factura, con_contenido: bool = False) -> dict:
    data = {
        "id": f.id,
        "usuarioId": f.usuario_id,
        "usuario": user_brief(f.usuario),
        "expedienteId": f.expediente_id,
        "expediente": (
            {"id": f.expediente.id, "referencia": f.expediente.referencia}
            if f.expediente
            else None
        ),
        "numero": f.numero,
        "importe": f.importe,
        "concepto": f.concepto,
        "estado": f.estado,
        "tieneContenido": bool(f.contenido),
        "fechaEmision": _iso(f.fecha_emision),
        "fechaVencimiento": _iso(f.fecha_vencimiento),
        "notas": f.notas,
    }
    if con_contenido:
        data["contenido"] = f.contenido
    return data


# =========================================================
# VARIOS
# =========================================================

def faq(item: FAQ) -> dict:
    return {
        "id": item.id,
        "pregunta": item.pregunta,
        "respuesta": item.respuesta,
        "categoria": item.categoria,
        "orden": item.orden,
    }


def audit_email(entry: AuditLog) -> dict:
    datos: Any = None
    if entry.datos:
        try:
            datos = json.loads(entry.datos)
        except json.JSONDecodeError:
            datos = entry.datos
    return {
        "id": entry.id,
        "usuarioId": entry.usuario_id,
        "expedienteId": entry.expediente_id,
        "descripcion": entry.descripcion,
        "datos": datos,
        "createdAt": _iso(entry.created_at),
    }
