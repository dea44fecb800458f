"""
Documentos del expediente: subida, revisión, borrado y presupuesto.

El contenido se guarda inline (base64) en la fila del documento.
Cada subida intenta satisfacer un hueco de la checklist.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import Request
from sqlalchemy import func, or_

from app.core.audit import log_audit, request_origin
from app.core.exceptions import DocumentNotFoundException, ValidationException
from app.models.documento import ESTADOS_DOCUMENTO, Documento
from app.models.expediente import ChecklistDocumento, Expediente
from app.models.user import Usuario
from app.services.base import BaseService
from app.services.checklist import link_document, unlink_document

TIPO_PRESUPUESTO = "presupuesto"
FASE_PRESUPUESTO = 2


@dataclass
class UploadResult:
    documento: Documento
    checklist: Optional[ChecklistDocumento]


class DocumentService(BaseService):

    def get(self, documento_id: Optional[str]) -> Documento:
        if not documento_id:
            raise ValidationException("id es requerido", field="id")
        documento = self.db.get(Documento, documento_id)
        if documento is None:
            raise DocumentNotFoundException(documento_id)
        return documento

    def upload(
        self,
        expediente: Expediente,
        actor: Usuario,
        *,
        nombre: Optional[str],
        tipo: Optional[str],
        contenido: Optional[str] = None,
        nombre_archivo: Optional[str] = None,
        fase: Optional[int] = None,
        notas: Optional[str] = None,
        es_judicial: bool = False,
    ) -> UploadResult:
        """
        Guarda el documento (estado `subido`) y lo vincula con la checklist
        en la misma transacción.
        """
        if not nombre or not tipo:
            raise ValidationException("Nombre y tipo son requeridos")

        with self._transaction():
            documento = Documento(
                expediente_id=expediente.id,
                nombre=nombre,
                tipo=tipo,
                estado="subido",
                fase=fase if fase is not None else expediente.fase_actual,
                fecha_subida=datetime.utcnow(),
                subido_por_id=actor.id,
                nombre_archivo=nombre_archivo,
                contenido=contenido,
                notas=notas,
                es_judicial=es_judicial,
            )
            self.db.add(documento)
            self.db.flush()
            item = link_document(self.db, expediente, documento)

        self._log_info(
            "Documento subido",
            case_id=expediente.id,
            action="document_uploaded",
            documento_id=documento.id,
            tipo=tipo,
            checklist=item.nombre if item else None,
        )
        return UploadResult(documento=documento, checklist=item)

    def review(
        self,
        documento: Documento,
        estado: Optional[str],
        actor: Usuario,
        notas: Optional[str] = None,
        request: Optional[Request] = None,
    ) -> Documento:
        """Cambia el estado de revisión (pendiente/subido/revisado/incorrecto)."""
        if estado not in ESTADOS_DOCUMENTO:
            raise ValidationException(
                f"Estado inválido. Valores permitidos: {', '.join(ESTADOS_DOCUMENTO)}",
                field="estado",
            )

        ip, user_agent = request_origin(request)
        with self._transaction():
            anterior = documento.estado
            documento.estado = estado
            if notas is not None:
                documento.notas = notas
            log_audit(
                self.db,
                usuario_id=actor.id,
                accion="revisar_documento",
                expediente_id=documento.expediente_id,
                descripcion=f"Documento {documento.nombre}: {anterior} -> {estado}",
                datos={"documentoId": documento.id, "estadoAnterior": anterior, "estado": estado},
                ip=ip,
                user_agent=user_agent,
            )
        return documento

    def delete(self, documento: Documento) -> None:
        with self._transaction():
            unlink_document(self.db, documento.id)
            self.db.delete(documento)
        self._log_info(
            "Documento eliminado",
            case_id=documento.expediente_id,
            action="document_deleted",
            documento_id=documento.id,
        )

    # =========================================================
    # PRESUPUESTO
    # =========================================================

    def latest_budget(self, expediente: Expediente) -> Optional[Documento]:
        return (
            self.db.query(Documento)
            .filter(
                Documento.expediente_id == expediente.id,
                or_(
                    func.lower(Documento.tipo) == TIPO_PRESUPUESTO,
                    func.lower(Documento.nombre).like("%presupuesto%"),
                    func.lower(Documento.nombre).like("%encargo%"),
                ),
            )
            .order_by(Documento.created_at.desc())
            .first()
        )

    def upload_budget(
        self,
        expediente: Expediente,
        actor: Usuario,
        nombre: Optional[str],
        contenido: Optional[str],
        nombre_archivo: Optional[str],
    ) -> Documento:
        if not nombre or not contenido or not nombre_archivo:
            raise ValidationException("expedienteId, nombre, contenido y nombreArchivo son requeridos")

        result = self.upload(
            expediente,
            actor,
            nombre=nombre,
            tipo=TIPO_PRESUPUESTO,
            contenido=contenido,
            nombre_archivo=nombre_archivo,
            fase=FASE_PRESUPUESTO,
        )
        return result.documento
