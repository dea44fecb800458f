"""
Modelo de Usuario para autenticación y autorización por rol.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Rol(str, Enum):
    """Roles del portal."""

    ADMIN = "admin"
    ABOGADO = "abogado"
    CLIENTE = "cliente"


class Usuario(Base):
    """
    Usuario del portal (admin, abogado o cliente).

    El rol no cambia tras la creación. Un cliente tiene como mucho un expediente.
    """

    __tablename__ = "usuarios"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    telefono: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    nif: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    rol: Mapped[str] = mapped_column(String(16), nullable=False, default=Rol.CLIENTE.value)
    activo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    ultimo_acceso: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Perfil
    direccion: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    codigo_postal: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    ciudad: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    numero_colegiado: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    datos_facturacion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    expediente_cliente = relationship(
        "Expediente",
        foreign_keys="Expediente.cliente_id",
        back_populates="cliente",
        uselist=False,
    )
    expedientes_asignados = relationship(
        "Expediente",
        foreign_keys="Expediente.abogado_asignado_id",
        back_populates="abogado",
    )

    @property
    def rol_enum(self) -> Rol:
        return Rol(self.rol)

    def __repr__(self):
        return f"<Usuario(id={self.id}, email={self.email}, rol={self.rol})>"
