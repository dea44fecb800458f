"""
ENDPOINTS DE FIRMAS.

Registro probatorio de solo inserción: blob de firma, user agent,
marca temporal e IP de origen.
"""
import json
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api import serializers
from app.api.deps import load_case
from app.core.audit import log_audit, request_origin
from app.core.auth import get_authorizer
from app.core.database import get_db, transaction
from app.core.exceptions import ValidationException
from app.core.logger import get_logger
from app.models.firma import Firma
from app.models.schemas import FirmaRequest
from app.services.access_control import Authorizer

logger = get_logger()

router = APIRouter(
    prefix="/firmas",
    tags=["firmas"],
)


@router.get("", summary="Firmas de un expediente")
def list_firmas(
    expediente_id: Optional[str] = Query(default=None, alias="expedienteId"),
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    expediente = load_case(db, authz, expediente_id)
    firmas = (
        db.query(Firma)
        .filter(Firma.expediente_id == expediente.id)
        .order_by(Firma.fecha_firma.desc())
        .all()
    )
    return {"firmas": [serializers.firma(f) for f in firmas]}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Firmar documento")
def create_firma(
    request: Request,
    payload: FirmaRequest,
    db: Session = Depends(get_db),
    authz: Authorizer = Depends(get_authorizer),
):
    """
    El cliente solo firma en su expediente y el abogado en los asignados;
    el alcance del Authorizer cubre ambos casos.
    """
    if not payload.documento or not payload.firma_data:
        raise ValidationException("expedienteId, documento y firmaData son requeridos")

    expediente = load_case(db, authz, payload.expediente_id)
    ip, user_agent = request_origin(request)
    fecha = datetime.utcnow()

    with transaction(db):
        firma = Firma(
            expediente_id=expediente.id,
            usuario_id=authz.user.id,
            tipo=payload.tipo,
            documento=payload.documento,
            datos_firma=json.dumps(
                {
                    "firma": payload.firma_data,
                    "userAgent": user_agent,
                    "timestamp": fecha.isoformat(),
                },
                ensure_ascii=False,
            ),
            ip=ip,
            verificado=True,
            fecha_firma=fecha,
        )
        db.add(firma)
        log_audit(
            db,
            usuario_id=authz.user.id,
            accion="firma_documento",
            expediente_id=expediente.id,
            descripcion=f"Documento firmado: {payload.documento}",
            datos={"tipo": payload.tipo, "documento": payload.documento},
            ip=ip,
            user_agent=user_agent,
        )

    logger.info(
        "Documento firmado",
        case_id=expediente.id,
        action="document_signed",
        user_id=authz.user.id,
    )
    return {"success": True, "firma": serializers.firma(firma)}
