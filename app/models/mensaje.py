from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Mensaje(Base):
    """
    Mensaje del hilo de un expediente.

    `destinatario` nulo significa difusión a todas las partes.
    `leido` se marca en bloque cuando la contraparte abre el hilo.
    """

    __tablename__ = "mensajes"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    expediente_id: Mapped[str] = mapped_column(
        ForeignKey("expedientes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    usuario_id: Mapped[str] = mapped_column(ForeignKey("usuarios.id"), nullable=False)
    remitente: Mapped[str] = mapped_column(String(16), nullable=False)
    destinatario: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    texto: Mapped[str] = mapped_column(Text, nullable=False)
    adjunto_nombre: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    adjunto_contenido: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    fecha_envio: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    leido: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    expediente = relationship("Expediente", back_populates="mensajes")
    usuario = relationship("Usuario")
