"""
Contratos de entrada de la API (cuerpos JSON).

Los campos se exponen en camelCase (como los consume el panel web) y se
manejan en snake_case dentro de Python. Los campos "obligatorios" de negocio
se declaran opcionales aquí y se validan en los servicios, para devolver los
mismos mensajes de error en español que el resto del portal.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base: alias camelCase, se aceptan ambos nombres, se ignoran extras."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =========================================================
# AUTH / USUARIOS
# =========================================================

class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RegistroRequest(CamelModel):
    nombre: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    telefono: Optional[str] = None
    nif: Optional[str] = None


class CrearClienteRequest(RegistroRequest):
    """Alta de cliente por el admin, opcionalmente con su expediente."""

    crear_expediente: bool = Field(default=False, description="Crear expediente y checklist")
    referencia: Optional[str] = Field(default=None, description="Si falta se genera LSO-<año>-<nnn>")
    tipo_procedimiento: str = Field(default="persona_fisica")


class CrearAbogadoRequest(RegistroRequest):
    numero_colegiado: Optional[str] = None


class ActualizarUsuarioRequest(CamelModel):
    activo: Optional[bool] = None


class PerfilRequest(CamelModel):
    email: Optional[str] = None
    telefono: Optional[str] = None
    direccion: Optional[str] = None
    codigo_postal: Optional[str] = None
    ciudad: Optional[str] = None
    facturacion_nombre: Optional[str] = None
    facturacion_nif: Optional[str] = None
    facturacion_direccion: Optional[str] = None
    facturacion_codigo_postal: Optional[str] = None
    facturacion_ciudad: Optional[str] = None
    numero_colegiado: Optional[str] = None


class CambioPasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


# =========================================================
# EXPEDIENTES
# =========================================================

class DeudaInput(CamelModel):
    tipo: str
    importe: float = Field(..., ge=0)
    descripcion: Optional[str] = None
    acreedor: Optional[str] = None


class CrearExpedienteRequest(CamelModel):
    cliente_id: Optional[str] = None
    referencia: Optional[str] = None
    tipo_procedimiento: Optional[str] = None
    juzgado: Optional[str] = None
    abogado_asignado_id: Optional[str] = None
    situacion_laboral: Optional[str] = None
    estado_civil: Optional[str] = None
    numero_hijos: Optional[int] = Field(default=None, ge=0)
    notas_internas: Optional[str] = None
    deudas: list[DeudaInput] = Field(default_factory=list)


class ActualizarExpedienteRequest(CamelModel):
    """
    Actualización directa de campos descriptivos.

    La fase y el porcentaje solo se cambian por PATCH /expedientes/{id}/fase.
    """

    expediente_id: Optional[str] = None
    juzgado: Optional[str] = None
    tipo_procedimiento: Optional[str] = None
    estado: Optional[str] = None
    fecha_presentacion: Optional[datetime] = None
    notas_internas: Optional[str] = None
    situacion_laboral: Optional[str] = None
    buena_fe: Optional[bool] = None
    sin_antecedentes: Optional[bool] = None
    estado_civil: Optional[str] = None
    numero_hijos: Optional[int] = Field(default=None, ge=0)


class CambioFaseRequest(CamelModel):
    # Sin tipo estricto: la validación de rango la hace Phase.of
    fase: Any = None


class AsignarAbogadoRequest(CamelModel):
    abogado_id: Optional[str] = None


# =========================================================
# DOCUMENTOS
# =========================================================

class SubirDocumentoRequest(CamelModel):
    nombre: Optional[str] = None
    tipo: Optional[str] = None
    expediente_id: Optional[str] = None
    contenido: Optional[str] = None
    nombre_archivo: Optional[str] = None
    fase: Optional[int] = None
    notas: Optional[str] = None
    es_judicial: bool = False


class RevisarDocumentoRequest(CamelModel):
    id: Optional[str] = None
    estado: Optional[str] = None
    notas: Optional[str] = None


class GenerarDocumentoRequest(CamelModel):
    tipo: Optional[str] = None
    expediente_id: Optional[str] = None
    datos: Dict[str, Any] = Field(default_factory=dict)


class InvestigacionRequest(CamelModel):
    consulta: Optional[str] = None
    expediente_id: Optional[str] = None


class PresupuestoRequest(CamelModel):
    expediente_id: Optional[str] = None
    nombre: Optional[str] = None
    contenido: Optional[str] = None
    nombre_archivo: Optional[str] = None


# =========================================================
# MENSAJES / FIRMAS / EMAIL
# =========================================================

class MensajeRequest(CamelModel):
    texto: Optional[str] = None
    expediente_id: Optional[str] = None
    destinatario: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("destinatarioRol", "destinatario")
    )
    adjunto_nombre: Optional[str] = None
    adjunto_contenido: Optional[str] = None


class FirmaRequest(CamelModel):
    expediente_id: Optional[str] = None
    documento: Optional[str] = None
    firma_data: Optional[str] = None
    tipo: str = "manuscrita"


class EmailRequest(CamelModel):
    to: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    expediente_id: Optional[str] = None
    tipo: str = "notificacion"


# =========================================================
# FACTURACIÓN
# =========================================================

class CrearFacturacionRequest(CamelModel):
    expediente_id: Optional[str] = None
    importe_presupuestado: Optional[float] = Field(default=None, ge=0)
    metodo_pago: Optional[str] = None
    notas: Optional[str] = None


class ActualizarFacturacionRequest(CamelModel):
    id: Optional[str] = None
    importe_presupuestado: Optional[float] = Field(default=None, ge=0)
    estado: Optional[str] = None
    metodo_pago: Optional[str] = None
    notas: Optional[str] = None


class CrearPagoRequest(CamelModel):
    facturacion_id: Optional[str] = None
    concepto: Optional[str] = None
    importe: Optional[float] = Field(default=None, gt=0)
    fecha_vencimiento: Optional[datetime] = None
    notas: Optional[str] = None


class ActualizarPagoRequest(CamelModel):
    estado: Optional[str] = None
    fecha_pago: Optional[datetime] = None
    metodo_pago: Optional[str] = None
    notas: Optional[str] = None


class CrearFacturaRequest(CamelModel):
    usuario_id: Optional[str] = None
    expediente_id: Optional[str] = None
    numero: Optional[str] = None
    importe: Optional[float] = Field(default=None, gt=0)
    concepto: Optional[str] = None
    contenido: Optional[str] = None
    fecha_vencimiento: Optional[datetime] = None
    notas: Optional[str] = None


class ActualizarFacturaRequest(CamelModel):
    id: Optional[str] = None
    estado: Optional[str] = None
    notas: Optional[str] = None
    contenido: Optional[str] = None
    metodo_pago: Optional[str] = None
