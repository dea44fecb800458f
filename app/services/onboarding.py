"""
Alta de clientes desde el panel de administración.

En una sola transacción:
1. crea el usuario (rol cliente)
2. si se pide, crea su expediente (referencia automática, fase 1, 5%)
3. siembra la checklist de onboarding (11 documentos)

El email de bienvenida se envía después del commit y su fallo no
deshace el alta.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.core.audit import log_audit, request_origin
from app.models.expediente import Expediente
from app.models.schemas import CrearClienteRequest
from app.models.user import Rol, Usuario
from app.services.base import BaseService
from app.services.cases import CaseService
from app.services.checklist import CHECKLIST_ONBOARDING
from app.services.email_sender import EmailResult
from app.services.notifications import deliver_best_effort, send_welcome_email
from app.services.users import UserService, validate_new_account

# Fase 1 se muestra como iniciada antes de pasar por el controlador de fases
PORCENTAJE_ONBOARDING = 5


@dataclass
class OnboardingResult:
    usuario: Usuario
    expediente: Optional[Expediente]
    email: Optional[EmailResult]


class OnboardingService(BaseService):

    def create_client(
        self,
        data: CrearClienteRequest,
        actor: Usuario,
        request: Optional[Request] = None,
    ) -> OnboardingResult:
        """
        Raises:
            ValidationException: campos ausentes o contraseña corta
            DuplicateEmailException: email ya registrado
            BusinessRuleException: referencia duplicada
        """
        users = UserService(self.db, self.logger)
        cases = CaseService(self.db, self.logger)

        validate_new_account(data.nombre, data.email, data.password)
        users.ensure_email_available(data.email)

        ip, user_agent = request_origin(request)
        expediente = None

        with self._transaction():
            usuario = users.build_user(
                nombre=data.nombre,
                email=data.email,
                password=data.password,
                rol=Rol.CLIENTE,
                telefono=data.telefono,
                nif=data.nif,
            )

            if data.crear_expediente:
                expediente = cases.build_case(
                    usuario,
                    referencia=data.referencia,
                    tipo_procedimiento=data.tipo_procedimiento,
                    porcentaje_avance=PORCENTAJE_ONBOARDING,
                    plantilla=CHECKLIST_ONBOARDING,
                )
                log_audit(
                    self.db,
                    usuario_id=actor.id,
                    accion="crear_expediente",
                    expediente_id=expediente.id,
                    descripcion=f"Creado expediente {expediente.referencia} para cliente {usuario.nombre}",
                    ip=ip,
                    user_agent=user_agent,
                )

        if expediente is not None:
            self.db.refresh(expediente)

        self._log_info(
            "Cliente dado de alta",
            case_id=expediente.id if expediente else None,
            action="client_onboarded",
            user_id=usuario.id,
            referencia=expediente.referencia if expediente else None,
        )

        email = deliver_best_effort(
            send_welcome_email,
            usuario.email,
            usuario.nombre,
            case_id=expediente.id if expediente else None,
            action="welcome_email",
        )
        return OnboardingResult(usuario=usuario, expediente=expediente, email=email)
