"""
Alta y mantenimiento de expedientes.

- Referencia automática `LSO-<año>-<NNN>` (NNN = mayor secuencia del año + 1)
- Alta con checklist sembrada desde plantilla
- Actualización directa de campos descriptivos (nunca la fase)
- Asignación/desasignación de abogado
"""
import re
from datetime import datetime
from typing import Optional, Sequence

from fastapi import Request

from app.core.audit import log_audit, request_origin
from app.core.exceptions import BusinessRuleException, CaseNotFoundException, ValidationException
from app.models.expediente import Deuda, EstadoExpediente, Expediente
from app.models.user import Rol, Usuario
from app.services.base import BaseService
from app.services.checklist import CHECKLIST_ESTANDAR, seed_checklist

PREFIJO_REFERENCIA = "LSO"

# Campos que PATCH /expediente puede tocar; fase y porcentaje quedan fuera
CAMPOS_EDITABLES = (
    "juzgado",
    "tipo_procedimiento",
    "estado",
    "fecha_presentacion",
    "notas_internas",
    "situacion_laboral",
    "buena_fe",
    "sin_antecedentes",
    "estado_civil",
    "numero_hijos",
)


def reference_pattern(year: int) -> "re.Pattern[str]":
    return re.compile(rf"^{PREFIJO_REFERENCIA}-{year}-(\d+)$")


def format_reference(year: int, seq: int) -> str:
    return f"{PREFIJO_REFERENCIA}-{year}-{seq:03d}"


class CaseService(BaseService):
    """Operaciones de escritura sobre expedientes."""

    def get(self, expediente_id: str) -> Expediente:
        expediente = self.db.get(Expediente, expediente_id)
        if expediente is None:
            raise CaseNotFoundException(expediente_id)
        return expediente

    def next_case_reference(self, year: Optional[int] = None) -> str:
        """Siguiente referencia libre del año (LSO-2025-001, LSO-2025-002, ...)."""
        year = year or datetime.utcnow().year
        pattern = reference_pattern(year)
        referencias = (
            self.db.query(Expediente.referencia)
            .filter(Expediente.referencia.like(f"{PREFIJO_REFERENCIA}-{year}-%"))
            .all()
        )
        ultima = 0
        for (ref,) in referencias:
            match = pattern.match(ref)
            if match:
                ultima = max(ultima, int(match.group(1)))
        return format_reference(year, ultima + 1)

    def build_case(
        self,
        cliente: Usuario,
        *,
        referencia: Optional[str] = None,
        tipo_procedimiento: Optional[str] = None,
        porcentaje_avance: int = 0,
        plantilla: Sequence[tuple[str, bool]] = CHECKLIST_ESTANDAR,
        deudas: Sequence = (),
        **campos,
    ) -> Expediente:
        """
        Crea el expediente y su checklist en la sesión, sin commit.

        Raises:
            BusinessRuleException: el cliente ya tiene expediente o la referencia existe
        """
        existente = self.db.query(Expediente).filter(Expediente.cliente_id == cliente.id).first()
        if existente is not None:
            raise BusinessRuleException(
                "El cliente ya tiene un expediente", rule="un_expediente_por_cliente"
            )

        referencia = (referencia or "").strip() or self.next_case_reference()
        if self.db.query(Expediente).filter(Expediente.referencia == referencia).first():
            raise BusinessRuleException("La referencia ya existe", rule="referencia_unica")

        expediente = Expediente(
            referencia=referencia,
            cliente_id=cliente.id,
            tipo_procedimiento=tipo_procedimiento or "persona_fisica",
            fase_actual=1,
            porcentaje_avance=porcentaje_avance,
            estado=EstadoExpediente.ACTIVO,
            **{k: v for k, v in campos.items() if v is not None},
        )
        self.db.add(expediente)
        self.db.flush()

        for deuda in deudas:
            self.db.add(
                Deuda(
                    expediente_id=expediente.id,
                    tipo=deuda.tipo,
                    importe=deuda.importe,
                    descripcion=deuda.descripcion,
                    acreedor=deuda.acreedor,
                )
            )

        seed_checklist(self.db, expediente, plantilla)
        return expediente

    def create_case(self, data, actor: Usuario, request: Optional[Request] = None) -> Expediente:
        """POST /expedientes: alta de expediente para un cliente existente."""
        if not data.cliente_id:
            raise ValidationException("Cliente es requerido", field="clienteId")

        cliente = self.db.get(Usuario, data.cliente_id)
        if cliente is None or cliente.rol != Rol.CLIENTE.value:
            raise BusinessRuleException("Cliente no encontrado", rule="cliente_valido")

        if data.abogado_asignado_id:
            self._require_lawyer(data.abogado_asignado_id)

        ip, user_agent = request_origin(request)
        with self._transaction():
            expediente = self.build_case(
                cliente,
                referencia=data.referencia,
                tipo_procedimiento=data.tipo_procedimiento,
                deudas=data.deudas,
                juzgado=data.juzgado,
                abogado_asignado_id=data.abogado_asignado_id,
                situacion_laboral=data.situacion_laboral,
                estado_civil=data.estado_civil,
                numero_hijos=data.numero_hijos,
                notas_internas=data.notas_internas,
            )
            log_audit(
                self.db,
                usuario_id=actor.id,
                accion="crear_expediente",
                expediente_id=expediente.id,
                descripcion=f"Creado expediente {expediente.referencia} para cliente {cliente.nombre}",
                ip=ip,
                user_agent=user_agent,
            )

        self._log_info(
            "Expediente creado",
            case_id=expediente.id,
            action="case_created",
            referencia=expediente.referencia,
        )
        return expediente

    def update_case(self, data, actor: Usuario, request: Optional[Request] = None) -> Expediente:
        """
        Actualización directa de campos descriptivos.

        `estado` permite reabrir un expediente cerrado de forma explícita.
        """
        if not data.expediente_id:
            raise ValidationException("expedienteId es requerido", field="expedienteId")

        expediente = self.get(data.expediente_id)
        cambios = {
            campo: getattr(data, campo)
            for campo in CAMPOS_EDITABLES
            if getattr(data, campo) is not None
        }

        estado = cambios.get("estado")
        if estado is not None and estado not in (EstadoExpediente.ACTIVO, EstadoExpediente.CERRADO):
            raise ValidationException("Estado inválido. Debe ser activo o cerrado", field="estado")

        ip, user_agent = request_origin(request)
        with self._transaction():
            for campo, valor in cambios.items():
                setattr(expediente, campo, valor)
            if estado == EstadoExpediente.ACTIVO:
                expediente.fecha_cierre = None
            elif estado == EstadoExpediente.CERRADO and expediente.fecha_cierre is None:
                expediente.fecha_cierre = datetime.utcnow()

            log_audit(
                self.db,
                usuario_id=actor.id,
                accion="actualizar_expediente",
                expediente_id=expediente.id,
                descripcion=f"Actualizado expediente {expediente.referencia}",
                datos={k: v for k, v in cambios.items()},
                ip=ip,
                user_agent=user_agent,
            )

        return expediente

    def assign_lawyer(
        self,
        expediente_id: str,
        abogado_id: Optional[str],
        actor: Usuario,
        request: Optional[Request] = None,
    ) -> Expediente:
        """Asigna (o con None desasigna) el abogado del expediente."""
        expediente = self.get(expediente_id)
        if abogado_id:
            self._require_lawyer(abogado_id)

        ip, user_agent = request_origin(request)
        with self._transaction():
            expediente.abogado_asignado_id = abogado_id or None
            log_audit(
                self.db,
                usuario_id=actor.id,
                accion="asignar_abogado" if abogado_id else "desasignar_abogado",
                expediente_id=expediente.id,
                descripcion=(
                    f"Asignado abogado al expediente {expediente.referencia}"
                    if abogado_id
                    else f"Desasignado abogado del expediente {expediente.referencia}"
                ),
                datos={"abogadoId": abogado_id},
                ip=ip,
                user_agent=user_agent,
            )

        self.db.refresh(expediente)
        self._log_info(
            "Abogado asignado" if abogado_id else "Abogado desasignado",
            case_id=expediente.id,
            action="assign_lawyer",
            abogado_id=abogado_id,
        )
        return expediente

    def _require_lawyer(self, abogado_id: str) -> Usuario:
        abogado = self.db.get(Usuario, abogado_id)
        if abogado is None or abogado.rol != Rol.ABOGADO.value or not abogado.activo:
            raise BusinessRuleException("Abogado no encontrado o no válido", rule="abogado_valido")
        return abogado
