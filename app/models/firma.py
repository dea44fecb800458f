from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Firma(Base):
    """Registro probatorio (solo inserción) de una firma sobre un documento."""

    __tablename__ = "firmas"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    expediente_id: Mapped[str] = mapped_column(
        ForeignKey("expedientes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    usuario_id: Mapped[str] = mapped_column(ForeignKey("usuarios.id"), nullable=False)
    tipo: Mapped[str] = mapped_column(String(32), nullable=False, default="manuscrita")
    documento: Mapped[str] = mapped_column(String(255), nullable=False)
    datos_firma: Mapped[str] = mapped_column(Text, nullable=False)  # JSON
    ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    verificado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fecha_firma: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    expediente = relationship("Expediente", back_populates="firmas")
    usuario = relationship("Usuario")
