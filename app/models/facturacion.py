"""
Facturación del expediente: resumen presupuesto/cobrado, pagos y facturas.

- Facturacion: uno por expediente, reconciliado a partir de sus pagos.
- Pago: línea de cobro (pendiente/pagado).
- Factura: entidad más laxa, ligada a un usuario y opcionalmente a un expediente.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


ESTADOS_FACTURACION = ("pendiente", "parcial", "pagado", "moroso")
ESTADOS_PAGO = ("pendiente", "pagado")
ESTADOS_FACTURA = ("emitida", "pagada", "anulada")


class Facturacion(Base):
    __tablename__ = "facturaciones"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    expediente_id: Mapped[str] = mapped_column(
        ForeignKey("expedientes.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    importe_presupuestado: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    importe_facturado: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    estado: Mapped[str] = mapped_column(String(16), nullable=False, default="pendiente")
    metodo_pago: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    notas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    expediente = relationship("Expediente", back_populates="facturacion")
    pagos = relationship(
        "Pago",
        back_populates="facturacion",
        cascade="all, delete-orphan",
        order_by="Pago.created_at",
    )


class Pago(Base):
    __tablename__ = "pagos"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    facturacion_id: Mapped[str] = mapped_column(
        ForeignKey("facturaciones.id", ondelete="CASCADE"), nullable=False, index=True
    )
    concepto: Mapped[str] = mapped_column(String(255), nullable=False)
    importe: Mapped[float] = mapped_column(Float, nullable=False)
    estado: Mapped[str] = mapped_column(String(16), nullable=False, default="pendiente")
    fecha_vencimiento: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    fecha_pago: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    metodo_pago: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    notas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    facturacion = relationship("Facturacion", back_populates="pagos")


class Factura(Base):
    __tablename__ = "facturas"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    usuario_id: Mapped[str] = mapped_column(ForeignKey("usuarios.id"), nullable=False, index=True)
    expediente_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("expedientes.id", ondelete="SET NULL"), nullable=True, index=True
    )
    numero: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    importe: Mapped[float] = mapped_column(Float, nullable=False)
    concepto: Mapped[str] = mapped_column(String(255), nullable=False)
    estado: Mapped[str] = mapped_column(String(16), nullable=False, default="emitida")
    contenido: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # PDF base64
    fecha_emision: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    fecha_vencimiento: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    notas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    usuario = relationship("Usuario")
    expediente = relationship("Expediente")
