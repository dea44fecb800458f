"""
Expediente de Ley de Segunda Oportunidad y sus hijos directos (deudas, checklist).
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class EstadoExpediente:
    ACTIVO = "activo"
    CERRADO = "cerrado"


class Expediente(Base):
    """
    Expediente (caso) de un cliente.
    Es el agregado raíz: deudas, documentos, mensajes, checklist, facturación.

    `porcentaje_avance == round(fase_actual / 10 * 100)` cuando la fase
    se fija a través del controlador de fases.
    """

    __tablename__ = "expedientes"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    referencia: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    cliente_id: Mapped[str] = mapped_column(
        ForeignKey("usuarios.id"), unique=True, nullable=False, index=True
    )
    abogado_asignado_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("usuarios.id"), nullable=True, index=True
    )

    juzgado: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tipo_procedimiento: Mapped[str] = mapped_column(
        String(64), nullable=False, default="persona_fisica"
    )
    fase_actual: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    porcentaje_avance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    estado: Mapped[str] = mapped_column(String(16), nullable=False, default=EstadoExpediente.ACTIVO)
    fecha_presentacion: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    fecha_cierre: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    notas_internas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Datos del deudor relevantes para la exoneración
    situacion_laboral: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    buena_fe: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sin_antecedentes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    estado_civil: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    numero_hijos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    cliente = relationship(
        "Usuario", foreign_keys=[cliente_id], back_populates="expediente_cliente"
    )
    abogado = relationship(
        "Usuario", foreign_keys=[abogado_asignado_id], back_populates="expedientes_asignados"
    )
    deudas = relationship(
        "Deuda", back_populates="expediente", cascade="all, delete-orphan"
    )
    documentos = relationship(
        "Documento", back_populates="expediente", cascade="all, delete-orphan"
    )
    checklist = relationship(
        "ChecklistDocumento",
        back_populates="expediente",
        cascade="all, delete-orphan",
        order_by="ChecklistDocumento.orden",
    )
    mensajes = relationship(
        "Mensaje",
        back_populates="expediente",
        cascade="all, delete-orphan",
        order_by="Mensaje.fecha_envio",
    )
    facturacion = relationship(
        "Facturacion", back_populates="expediente", uselist=False, cascade="all, delete-orphan"
    )
    firmas = relationship("Firma", back_populates="expediente", cascade="all, delete-orphan")

    @property
    def deuda_total(self) -> float:
        return sum(d.importe for d in self.deudas)

    def __repr__(self):
        return f"<Expediente(id={self.id}, referencia={self.referencia}, fase={self.fase_actual})>"


class Deuda(Base):
    """Deuda del cliente (financiera, pública, proveedores...)."""

    __tablename__ = "deudas"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    expediente_id: Mapped[str] = mapped_column(
        ForeignKey("expedientes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tipo: Mapped[str] = mapped_column(String(32), nullable=False)
    importe: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    descripcion: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    acreedor: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    expediente = relationship("Expediente", back_populates="deudas")


class ChecklistDocumento(Base):
    """
    Hueco de documentación requerida del expediente.

    Se siembra desde una plantilla al crear el expediente y se vincula
    a un Documento cuando una subida coincide por nombre.
    """

    __tablename__ = "checklist_documentos"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    expediente_id: Mapped[str] = mapped_column(
        ForeignKey("expedientes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    orden: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    obligatorio: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    no_aplica: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    documento_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("documentos.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    expediente = relationship("Expediente", back_populates="checklist")
    documento = relationship("Documento")
