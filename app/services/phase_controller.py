"""
Controlador de fases del expediente.

Única lógica de transición con estado del portal:
1. valida la fase destino (Phase.of)
2. fija fase y porcentaje; en la fase 10 cierra el expediente
3. registra la auditoría en la misma transacción
4. tras el commit, notifica al cliente por email (mejor esfuerzo)

El admin puede saltar fases o retroceder. Un expediente cerrado no se
reabre desde aquí.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import Request

from app.core.audit import log_audit, request_origin
from app.core.exceptions import CaseNotFoundException
from app.legal.fases import Phase
from app.models.expediente import EstadoExpediente, Expediente
from app.models.user import Usuario
from app.services.base import BaseService
from app.services.email_sender import EmailResult
from app.services.notifications import deliver_best_effort, send_phase_change_email


@dataclass
class PhaseChangeResult:
    expediente: Expediente
    fase_anterior: int
    fase: Phase
    email: Optional[EmailResult]

    @property
    def message(self) -> str:
        return f"Fase actualizada a {self.fase.numero}. Progreso: {self.fase.porcentaje}%"


class PhaseController(BaseService):
    """Aplica cambios de fase sobre expedientes."""

    def change_phase(
        self,
        expediente_id: str,
        fase_value,
        actor: Usuario,
        request: Optional[Request] = None,
    ) -> PhaseChangeResult:
        """
        Cambia la fase de un expediente.

        Raises:
            ValidationException: fase ausente o fuera de [1, 10] (sin mutar nada)
            CaseNotFoundException: expediente inexistente
        """
        fase = Phase.of(fase_value)

        expediente = self.db.get(Expediente, expediente_id)
        if expediente is None:
            raise CaseNotFoundException(expediente_id)

        fase_anterior = expediente.fase_actual
        ip, user_agent = request_origin(request)

        with self._transaction():
            expediente.fase_actual = fase.numero
            expediente.porcentaje_avance = fase.porcentaje
            if fase.es_final:
                expediente.estado = EstadoExpediente.CERRADO
                expediente.fecha_cierre = datetime.utcnow()

            log_audit(
                self.db,
                usuario_id=actor.id,
                accion="cambiar_fase",
                expediente_id=expediente.id,
                descripcion=f"Fase cambiada de {fase_anterior} a {fase.numero} ({fase.porcentaje}%)",
                datos={
                    "faseAnterior": fase_anterior,
                    "faseNueva": fase.numero,
                    "porcentaje": fase.porcentaje,
                },
                ip=ip,
                user_agent=user_agent,
            )

        self._log_info(
            "Fase de expediente actualizada",
            case_id=expediente.id,
            action="phase_change",
            user_id=actor.id,
            fase_anterior=fase_anterior,
            fase_nueva=fase.numero,
        )

        email = self._notify_client(expediente, fase_anterior, fase)
        return PhaseChangeResult(
            expediente=expediente, fase_anterior=fase_anterior, fase=fase, email=email
        )

    def _notify_client(
        self, expediente: Expediente, fase_anterior: int, fase: Phase
    ) -> Optional[EmailResult]:
        cliente = expediente.cliente
        if cliente is None or not cliente.email:
            return None

        info = fase.info
        return deliver_best_effort(
            send_phase_change_email,
            cliente.email,
            cliente.nombre,
            fase_anterior,
            fase.numero,
            info.nombre,
            info.descripcion,
            expediente.referencia,
            case_id=expediente.id,
            action="phase_change_email",
        )
