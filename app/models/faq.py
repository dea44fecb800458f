from sqlalchemy import Boolean, Column, Integer, String, Text

from app.core.database import Base


class FAQ(Base):
    """Pregunta frecuente pública."""

    __tablename__ = "faqs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pregunta = Column(String(255), nullable=False)
    respuesta = Column(Text, nullable=False)
    categoria = Column(String(64), nullable=True)
    orden = Column(Integer, nullable=False, default=0)
    activo = Column(Boolean, nullable=False, default=True)
