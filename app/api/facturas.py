"""
ENDPOINTS DE FACTURAS.

- cliente: sus facturas (por usuario)
- abogado: facturas ligadas a sus expedientes
- admin: todas, con filtros

Marcar una factura como pagada reconcilia la facturación del expediente
en la misma transacción.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api import serializers
from app.core.auth import get_authorizer, require_abogado_or_admin, require_admin
from app.core.database import get_db
from app.core.exceptions import CaseNotFoundException, NotFoundException
from app.models.expediente import Expediente
from app.models.facturacion import Factura
from app.models.schemas import ActualizarFacturaRequest, CrearFacturaRequest
from app.models.user import Usuario
from app.services.access_control import Authorizer, authorizer_for
from app.services.billing import BillingService
from app.services.invoice_pdf import build_invoice_pdf, decode_stored_content

router = APIRouter(
    prefix="/facturas",
    tags=["facturas"],
)


def _invoice_in_scope(db: Session, authz: Authorizer, factura_id: Optional[str]) -> Factura:
    factura = BillingService(db).get_invoice(factura_id)
    return authz.ensure_invoice_access(factura)


def _pdf_response(content: bytes, numero: str, inline: bool = False) -> Response:
    disposition = "inline" if inline else "attachment"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'{disposition}; filename="factura-{numero}.pdf"'},
    )


@router.get("", summary="Listar facturas")
def list_facturas(
    usuario_id: Optional[str] = Query(default=None, alias="usuarioId"),
    estado: Optional[str] = None,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    query = authz.scope_invoices(db.query(Factura))
    if usuario_id and authz.is_admin:
        query = query.filter(Factura.usuario_id == usuario_id)
    if estado:
        query = query.filter(Factura.estado == estado)
    facturas = query.order_by(Factura.fecha_emision.desc()).all()
    return {"facturas": [serializers.factura(f) for f in facturas]}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Emitir factura")
def create_factura(
    payload: CrearFacturaRequest,
    db: Session = Depends(get_db),
    admin: Usuario = Depends(require_admin),
):
    expediente = None
    if payload.expediente_id:
        expediente = db.get(Expediente, payload.expediente_id)
        if expediente is None:
            raise CaseNotFoundException(payload.expediente_id)

    factura = BillingService(db).register_invoice(
        usuario_id=payload.usuario_id,
        numero=payload.numero,
        importe=payload.importe,
        concepto=payload.concepto,
        expediente=expediente,
        contenido=payload.contenido,
        fecha_vencimiento=payload.fecha_vencimiento,
        notas=payload.notas,
        actor=admin,
    )
    return {"success": True, "factura": serializers.factura(factura)}


@router.patch("", summary="Actualizar factura (admin)")
def update_factura_admin(
    payload: ActualizarFacturaRequest,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    service = BillingService(db)
    factura = service.update_invoice(
        service.get_invoice(payload.id),
        estado=payload.estado,
        notas=payload.notas,
        contenido=payload.contenido,
        metodo_pago=payload.metodo_pago,
    )
    return {"success": True, "factura": serializers.factura(factura)}


@router.get("/{factura_id}", summary="Detalle de factura")
def get_factura(
    factura_id: str,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    factura = _invoice_in_scope(db, authz, factura_id)
    return {"factura": serializers.factura(factura)}


@router.patch("/{factura_id}", summary="Actualizar factura")
def update_factura(
    factura_id: str,
    payload: ActualizarFacturaRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    factura = _invoice_in_scope(db, authorizer_for(user), factura_id)
    factura = BillingService(db).update_invoice(
        factura,
        estado=payload.estado,
        notas=payload.notas,
        metodo_pago=payload.metodo_pago,
    )
    return {"success": True, "factura": serializers.factura(factura)}


@router.delete("/{factura_id}", summary="Anular factura")
def annul_factura(
    factura_id: str,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    service = BillingService(db)
    factura = service.annul_invoice(service.get_invoice(factura_id))
    return {"success": True, "factura": serializers.factura(factura)}


@router.get("/{factura_id}/download", summary="Descargar PDF subido")
def download_factura(
    factura_id: str,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    factura = _invoice_in_scope(db, authz, factura_id)
    content = decode_stored_content(factura.contenido)
    if content is None:
        raise NotFoundException("La factura no tiene PDF adjunto", entity="factura", entity_id=factura.id)
    return _pdf_response(content, factura.numero)


@router.get("/{factura_id}/pdf", summary="PDF generado de la factura")
def factura_pdf(
    factura_id: str,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    factura = _invoice_in_scope(db, authz, factura_id)
    buffer = build_invoice_pdf(factura)
    return _pdf_response(buffer.getvalue(), factura.numero, inline=True)
