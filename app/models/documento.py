"""
Documento del expediente.

El contenido se guarda inline (base64 o texto generado) en la propia fila.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


ESTADOS_DOCUMENTO = ("pendiente", "subido", "revisado", "incorrecto")


class Documento(Base):
    __tablename__ = "documentos"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Nulo para documentos generados con IA sin expediente
    expediente_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("expedientes.id", ondelete="CASCADE"), nullable=True, index=True
    )
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    tipo: Mapped[str] = mapped_column(String(64), nullable=False)
    estado: Mapped[str] = mapped_column(String(16), nullable=False, default="pendiente")
    fase: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fecha_subida: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    subido_por_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True
    )
    nombre_archivo: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contenido: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    es_judicial: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    expediente = relationship("Expediente", back_populates="documentos")
    subido_por = relationship("Usuario")

    def __repr__(self):
        return f"<Documento(id={self.id}, nombre={self.nombre}, estado={self.estado})>"
