"""
Generación de documentos legales e investigación jurídica con IA.

La salida del LLM ES el entregable de estos endpoints: cualquier fallo
de execute_llm() se propaga (500 con detalles) y no se guarda nada.
"""
from datetime import datetime
from typing import Any, Mapping, Optional

from app.core.exceptions import ValidationException
from app.legal.fases import fase_info
from app.legal.plantillas import (
    PLANTILLAS,
    SYSTEM_PROMPT_DOCUMENTOS,
    SYSTEM_PROMPT_INVESTIGACION,
    get_plantilla,
)
from app.models.documento import Documento
from app.models.expediente import Expediente
from app.models.user import Usuario
from app.services.base import BaseService
from app.services.llm_executor import execute_llm

TIPO_INVESTIGACION = "INVESTIGACION"
LIMITE_INVESTIGACIONES = 20


def build_case_context(expediente: Optional[Expediente]) -> str:
    """Resumen del expediente que se añade al system prompt."""
    if expediente is None:
        return ""

    fase = fase_info(expediente.fase_actual)
    lineas = [
        "CONTEXTO DEL EXPEDIENTE:",
        f"- Referencia: {expediente.referencia}",
        f"- Cliente: {expediente.cliente.nombre if expediente.cliente else 'No especificado'}",
        f"- Fase actual: {expediente.fase_actual}" + (f" ({fase.nombre})" if fase else ""),
        f"- Tipo de procedimiento: {expediente.tipo_procedimiento}",
        f"- Juzgado: {expediente.juzgado or 'No asignado'}",
        f"- Deuda total: {expediente.deuda_total:.2f}€",
    ]
    if expediente.deudas:
        lineas.append("- Deudas:")
        for deuda in expediente.deudas:
            lineas.append(
                f"  * {deuda.acreedor or deuda.tipo}: {deuda.importe:.2f}€ ({deuda.tipo})"
            )
    return "\n".join(lineas)


class LegalAIService(BaseService):

    def generate_document(
        self,
        tipo: Optional[str],
        datos: Optional[Mapping[str, Any]],
        actor: Usuario,
        expediente: Optional[Expediente] = None,
    ) -> Documento:
        """
        Genera un documento desde una plantilla y lo guarda.

        Raises:
            ValidationException: tipo ausente o desconocido
            LLMNotAvailableException / LLMException: fallo de generación
        """
        plantilla = get_plantilla(tipo)
        if plantilla is None:
            raise ValidationException(
                f"Tipo de documento no válido. Tipos disponibles: {', '.join(PLANTILLAS)}",
                field="tipo",
            )

        system_prompt = SYSTEM_PROMPT_DOCUMENTOS
        contexto = build_case_context(expediente)
        if contexto:
            system_prompt = f"{system_prompt}\n\n{contexto}"

        result = execute_llm(
            task_name=f"generar_{plantilla.id}",
            prompt_system=system_prompt,
            prompt_user=plantilla.render(datos),
            temperature=0.3,
        )

        with self._transaction():
            documento = Documento(
                expediente_id=expediente.id if expediente else None,
                nombre=plantilla.nombre,
                tipo=plantilla.id.upper(),
                estado="subido",
                contenido=result.output_text,
                fecha_subida=datetime.utcnow(),
                subido_por_id=actor.id,
                fase=expediente.fase_actual if expediente else None,
                notas=f"Generado con IA ({result.model_used})",
            )
            self.db.add(documento)

        self._log_info(
            "Documento generado con IA",
            case_id=documento.expediente_id,
            action="document_generated",
            tipo=documento.tipo,
            model=result.model_used,
        )
        return documento

    def research(
        self,
        consulta: Optional[str],
        actor: Usuario,
        expediente: Optional[Expediente] = None,
    ) -> tuple[Documento, list[str]]:
        """Consulta jurídica con citas; el resultado se guarda como INVESTIGACION."""
        if not consulta or not consulta.strip():
            raise ValidationException("La consulta es requerida", field="consulta")

        system_prompt = SYSTEM_PROMPT_INVESTIGACION
        contexto = build_case_context(expediente)
        if contexto:
            system_prompt = f"{system_prompt}\n\n{contexto}"

        result = execute_llm(
            task_name="investigacion_legal",
            prompt_system=system_prompt,
            prompt_user=consulta,
            temperature=0.2,
        )

        contenido = result.output_text
        if result.citations:
            fuentes = "\n".join(f"[{i}] {url}" for i, url in enumerate(result.citations, start=1))
            contenido = f"{contenido}\n\nFUENTES:\n{fuentes}"

        with self._transaction():
            documento = Documento(
                expediente_id=expediente.id if expediente else None,
                nombre=f"Investigación: {consulta[:50]}...",
                tipo=TIPO_INVESTIGACION,
                estado="subido",
                contenido=contenido,
                fecha_subida=datetime.utcnow(),
                subido_por_id=actor.id,
                notas=consulta,
            )
            self.db.add(documento)

        self._log_info(
            "Investigación legal realizada",
            case_id=documento.expediente_id,
            action="legal_research",
            citations=len(result.citations),
        )
        return documento, result.citations

    def recent_research(self, expediente_ids: Optional[list[str]] = None) -> list[Documento]:
        query = self.db.query(Documento).filter(Documento.tipo == TIPO_INVESTIGACION)
        if expediente_ids is not None:
            query = query.filter(Documento.expediente_id.in_(expediente_ids))
        return query.order_by(Documento.created_at.desc()).limit(LIMITE_INVESTIGACIONES).all()
