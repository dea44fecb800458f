"""
ENDPOINTS DE DOCUMENTOS, GENERACIÓN CON IA, INVESTIGACIÓN Y PRESUPUESTO.

- El cliente solo ve los documentos no judiciales de su expediente.
- Abogado y admin trabajan sobre un expediente concreto de su alcance.
- La generación con IA es el entregable: su fallo es un 500 con detalles.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api import serializers
from app.api.deps import load_case, resolve_case
from app.core.auth import get_authorizer, require_abogado_or_admin, require_admin
from app.core.database import get_db
from app.legal.plantillas import list_plantillas
from app.models.documento import Documento
from app.models.expediente import Expediente
from app.models.schemas import (
    GenerarDocumentoRequest,
    InvestigacionRequest,
    PresupuestoRequest,
    RevisarDocumentoRequest,
    SubirDocumentoRequest,
)
from app.models.user import Rol, Usuario
from app.services.access_control import Authorizer, authorizer_for
from app.services.documents import DocumentService
from app.services.legal_ai import LegalAIService

router = APIRouter(tags=["documentos"])

MENSAJE_SIN_EXPEDIENTE = "No tienes un expediente activo"


# =========================================================
# DOCUMENTOS
# =========================================================

@router.get("/documentos", summary="Documentos del expediente")
def list_documentos(
    expediente_id: Optional[str] = Query(default=None, alias="expedienteId"),
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    expediente = resolve_case(db, authz, expediente_id)
    documentos = (
        db.query(Documento)
        .filter(Documento.expediente_id == expediente.id)
        .order_by(Documento.created_at.desc())
        .all()
    )
    if authz.rol == Rol.CLIENTE:
        documentos = [d for d in documentos if not d.es_judicial]

    return {
        "documentos": [serializers.documento(d) for d in documentos],
        "checklist": [serializers.checklist_item(i) for i in expediente.checklist],
    }


@router.post("/documentos", status_code=status.HTTP_201_CREATED, summary="Subir documento")
def upload_documento(
    payload: SubirDocumentoRequest,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    """Sube un documento y lo vincula con el primer hueco de checklist que coincida."""
    expediente = resolve_case(db, authz, payload.expediente_id, MENSAJE_SIN_EXPEDIENTE)
    result = DocumentService(db).upload(
        expediente,
        authz.user,
        nombre=payload.nombre,
        tipo=payload.tipo,
        contenido=payload.contenido,
        nombre_archivo=payload.nombre_archivo,
        fase=payload.fase,
        notas=payload.notas,
        # Un cliente no puede marcar documentos como judiciales
        es_judicial=payload.es_judicial and authz.rol != Rol.CLIENTE,
    )
    return {
        "success": True,
        "documento": serializers.documento(result.documento),
        "checklistVinculado": (
            serializers.checklist_item(result.checklist) if result.checklist else None
        ),
    }


def _review(
    documento_id: Optional[str],
    payload: RevisarDocumentoRequest,
    request: Request,
    db: Session,
    user: Usuario,
) -> dict:
    service = DocumentService(db)
    documento = authorizer_for(user).ensure_document_access(service.get(documento_id))
    documento = service.review(documento, payload.estado, user, payload.notas, request)
    return {"success": True, "documento": serializers.documento(documento)}


@router.patch("/documentos", summary="Revisar documento")
def review_documento(
    request: Request,
    payload: RevisarDocumentoRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    return _review(payload.id, payload, request, db, user)


@router.get("/documentos/generar", summary="Plantillas disponibles")
def list_generar(_user: Usuario = Depends(require_abogado_or_admin)):
    return {"tipos": list_plantillas()}


@router.post("/documentos/generar", summary="Generar documento con IA")
def generar_documento(
    payload: GenerarDocumentoRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    expediente = None
    if payload.expediente_id:
        expediente = load_case(db, authorizer_for(user), payload.expediente_id)

    documento = LegalAIService(db).generate_document(payload.tipo, payload.datos, user, expediente)
    return {"success": True, "documento": serializers.documento(documento, con_contenido=True)}


@router.get("/documentos/{documento_id}", summary="Documento con contenido")
def get_documento(
    documento_id: str,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    documento = authz.ensure_document_access(DocumentService(db).get(documento_id))
    return {"documento": serializers.documento(documento, con_contenido=True)}


@router.patch("/documentos/{documento_id}", summary="Revisar documento por id")
def review_documento_by_id(
    documento_id: str,
    request: Request,
    payload: RevisarDocumentoRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    return _review(documento_id, payload, request, db, user)


@router.delete("/documentos/{documento_id}", summary="Eliminar documento")
def delete_documento(
    documento_id: str,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
):
    service = DocumentService(db)
    service.delete(service.get(documento_id))
    return {"success": True}


# =========================================================
# INVESTIGACIÓN LEGAL
# =========================================================

@router.post("/investigacion", summary="Investigación jurídica con IA")
def investigar(
    payload: InvestigacionRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    expediente = None
    if payload.expediente_id:
        expediente = load_case(db, authorizer_for(user), payload.expediente_id)

    documento, citas = LegalAIService(db).research(payload.consulta, user, expediente)
    return {
        "success": True,
        "respuesta": documento.contenido,
        "citas": citas,
        "documento": serializers.documento(documento),
    }


@router.get("/investigacion", summary="Últimas investigaciones")
def list_investigaciones(
    expediente_id: Optional[str] = Query(default=None, alias="expedienteId"),
    db: Session = Depends(get_db),
    user: Usuario = Depends(require_abogado_or_admin),
):
    authz = authorizer_for(user)
    if expediente_id:
        expediente_ids = [load_case(db, authz, expediente_id).id]
    elif authz.is_admin:
        expediente_ids = None
    else:
        expediente_ids = [e.id for e in authz.scope(db.query(Expediente)).all()]

    documentos = LegalAIService(db).recent_research(expediente_ids)
    return {"investigaciones": [serializers.documento(d, con_contenido=True) for d in documentos]}


# =========================================================
# PRESUPUESTO
# =========================================================

@router.get("/presupuesto", summary="Último presupuesto del expediente")
def get_presupuesto(
    expediente_id: Optional[str] = Query(default=None, alias="expedienteId"),
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    expediente = resolve_case(db, authz, expediente_id)
    documento = DocumentService(db).latest_budget(expediente)
    return {
        "presupuesto": serializers.documento(documento, con_contenido=True) if documento else None,
    }


@router.post("/presupuesto", status_code=status.HTTP_201_CREATED, summary="Subir presupuesto")
def upload_presupuesto(
    payload: PresupuestoRequest,
    db: Session = Depends(get_db),
    admin: Usuario = Depends(require_admin),
):
    expediente = load_case(db, authorizer_for(admin), payload.expediente_id)
    documento = DocumentService(db).upload_budget(
        expediente, admin, payload.nombre, payload.contenido, payload.nombre_archivo
    )
    return {"success": True, "documento": serializers.documento(documento)}
