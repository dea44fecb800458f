"""
Modelo de Auditoría.

Registro append-only de acciones sensibles sobre expedientes:
- Cambios de fase
- Asignación de abogados
- Creación de expedientes y facturación
- Firmas y emails enviados

Sirve para trazabilidad, no para reconstruir estado.
"""
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.core.database import Base


class AuditLog(Base):
    """
    Registro de auditoría persistente.

    Cada entrada registra:
    - Quién: usuario_id
    - Qué: accion + descripcion
    - Dónde: expediente_id (opcional)
    - Cuándo: created_at
    - Cómo: ip, user_agent
    - Detalles: datos (JSON)
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    usuario_id = Column(String(36), nullable=True, index=True)
    expediente_id = Column(String(36), nullable=True, index=True)
    accion = Column(String(64), nullable=False, index=True)
    descripcion = Column(Text, nullable=True)
    datos = Column(Text, nullable=True)
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog {self.id}: {self.usuario_id} - {self.accion} @ {self.created_at}>"
