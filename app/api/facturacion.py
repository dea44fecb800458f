"""
ENDPOINTS DE FACTURACIÓN Y PAGOS.

La facturación (una por expediente) se reconcilia siempre a partir de
sus pagos: importeFacturado = suma de pagos `pagado`.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api import serializers
from app.api.deps import load_case
from app.core.auth import get_authorizer, require_abogado_or_admin
from app.core.database import get_db
from app.core.exceptions import ValidationException
from app.models.expediente import Expediente
from app.models.facturacion import Facturacion, Pago
from app.models.schemas import (
    ActualizarFacturacionRequest,
    ActualizarPagoRequest,
    CrearFacturacionRequest,
    CrearPagoRequest,
)
from app.models.user import Usuario
from app.services.access_control import Authorizer, authorizer_for
from app.services.billing import BillingService

router = APIRouter(tags=["facturacion"])


def _billing_in_scope(service: BillingService, authz: Authorizer, facturacion_id: Optional[str]) -> Facturacion:
    if not facturacion_id:
        raise ValidationException("facturacionId es requerido", field="facturacionId")
    facturacion = service.get_billing(facturacion_id)
    authz.ensure_access(facturacion.expediente)
    return facturacion


def _payment_in_scope(service: BillingService, authz: Authorizer, pago_id: str) -> Pago:
    pago = service.get_payment(pago_id)
    authz.ensure_access(pago.facturacion.expediente)
    return pago


# =========================================================
# FACTURACIÓN
# =========================================================

@router.get("/facturacion", summary="Facturación de los expedientes visibles")
def list_facturacion(
    expediente_id: Optional[str] = Query(default=None, alias="expedienteId"),
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    query = authz.scope(
        db.query(Facturacion).join(Expediente, Facturacion.expediente_id == Expediente.id)
    )
    if expediente_id:
        query = query.filter(Facturacion.expediente_id == expediente_id)
    registros = query.order_by(Facturacion.created_at.desc()).all()
    return {"facturaciones": [serializers.facturacion(f) for f in registros]}


@router.post("/facturacion", status_code=status.HTTP_201_CREATED, summary="Crear facturación")
def create_facturacion(
    payload: CrearFacturacionRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    expediente = load_case(db, authorizer_for(user), payload.expediente_id)
    facturacion = BillingService(db).create_billing(
        expediente,
        payload.importe_presupuestado,
        user,
        metodo_pago=payload.metodo_pago,
        notas=payload.notas,
    )
    return {"success": True, "facturacion": serializers.facturacion(facturacion)}


@router.patch("/facturacion", summary="Actualizar facturación")
def update_facturacion(
    payload: ActualizarFacturacionRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    service = BillingService(db)
    facturacion = _billing_in_scope(service, authorizer_for(user), payload.id)
    facturacion = service.update_billing(
        facturacion,
        user,
        importe_presupuestado=payload.importe_presupuestado,
        estado=payload.estado,
        metodo_pago=payload.metodo_pago,
        notas=payload.notas,
    )
    return {"success": True, "facturacion": serializers.facturacion(facturacion)}


# =========================================================
# PAGOS DE UNA FACTURACIÓN
# =========================================================

@router.get("/facturacion/pagos", summary="Pagos de una facturación")
def list_pagos_facturacion(
    facturacion_id: Optional[str] = Query(default=None, alias="facturacionId"),
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    facturacion = _billing_in_scope(BillingService(db), authz, facturacion_id)
    return {"pagos": [serializers.pago(p) for p in facturacion.pagos]}


@router.post("/facturacion/pagos", status_code=status.HTTP_201_CREATED, summary="Añadir pago")
def create_pago(
    payload: CrearPagoRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    service = BillingService(db)
    facturacion = _billing_in_scope(service, authorizer_for(user), payload.facturacion_id)
    pago = service.create_payment(
        facturacion,
        payload.concepto,
        payload.importe,
        fecha_vencimiento=payload.fecha_vencimiento,
        notas=payload.notas,
    )
    return {"success": True, "pago": serializers.pago(pago)}


@router.patch("/facturacion/pagos/{pago_id}", summary="Actualizar pago")
def update_pago(
    pago_id: str,
    payload: ActualizarPagoRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    service = BillingService(db)
    pago = _payment_in_scope(service, authorizer_for(user), pago_id)
    pago = service.update_payment(
        pago,
        estado=payload.estado,
        fecha_pago=payload.fecha_pago,
        metodo_pago=payload.metodo_pago,
        notas=payload.notas,
    )
    return {
        "success": True,
        "pago": serializers.pago(pago),
        "facturacion": serializers.facturacion(pago.facturacion),
    }


@router.delete("/facturacion/pagos/{pago_id}", summary="Eliminar pago")
def delete_pago(
    pago_id: str,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    service = BillingService(db)
    pago = _payment_in_scope(service, authorizer_for(user), pago_id)
    facturacion = service.delete_payment(pago)
    return {"success": True, "facturacion": serializers.facturacion(facturacion)}


# =========================================================
# LISTADO GLOBAL DE PAGOS
# =========================================================

@router.get("/pagos", summary="Pagos de los expedientes visibles")
def list_pagos(
    estado: Optional[str] = None,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    query = authz.scope(
        db.query(Pago)
        .join(Facturacion, Pago.facturacion_id == Facturacion.id)
        .join(Expediente, Facturacion.expediente_id == Expediente.id)
    )
    if estado:
        query = query.filter(Pago.estado == estado)
    pagos = query.order_by(Pago.created_at.desc()).all()
    return {"pagos": [serializers.pago(p, con_expediente=True) for p in pagos]}
