"""
ENDPOINTS PÚBLICOS: salud, versión y preguntas frecuentes.
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api import serializers
from app.core.config import get_settings
from app.core.database import Base, get_db
from app.core.logger import get_logger
from app.models.faq import FAQ
from app.models.user import Usuario

logger = get_logger()

router = APIRouter(tags=["public"])


def check_database(db: Session) -> dict:
    """Conectividad, tablas y número de usuarios."""
    status = {
        "configured": bool(get_settings().database_url),
        "connected": False,
        "tablesExist": False,
        "userCount": None,
        "error": None,
    }
    try:
        db.execute(text("SELECT 1"))
        status["connected"] = True

        existentes = set(inspect(db.get_bind()).get_table_names())
        status["tablesExist"] = set(Base.metadata.tables).issubset(existentes)
        if Usuario.__tablename__ in existentes:
            status["userCount"] = db.query(Usuario).count()
    except SQLAlchemyError as e:
        logger.error("Health check de base de datos fallido", action="health_db", error=e)
        status["error"] = str(e)
    return status


@router.get("/health", summary="Estado del servicio")
def health(db: Session = Depends(get_db)):
    settings = get_settings()
    database = check_database(db)
    healthy = database["connected"]

    body = {
        "status": "healthy" if healthy else "unhealthy",
        "checks": {
            "timestamp": datetime.utcnow().isoformat(),
            "environment": settings.environment,
            "database": database,
            "jwt": {"configured": settings.jwt_configured},
        },
    }
    return JSONResponse(status_code=200 if healthy else 500, content=body)


@router.get("/version", summary="Versión")
def version():
    settings = get_settings()
    return {
        "version": settings.app_version,
        "name": settings.app_name,
        "features": {
            "email": settings.email_configured,
            "ia": settings.llm_available,
            "rateLimit": settings.rate_limit_enabled,
            "faseMaxima": 10,
        },
    }


@router.get("/faq", summary="Preguntas frecuentes")
def list_faq(db: Session = Depends(get_db)):
    faqs = db.query(FAQ).filter(FAQ.activo.is_(True)).order_by(FAQ.orden).all()
    return {"faqs": [serializers.faq(f) for f in faqs]}
