"""
Servicio base del portal.

Proporciona funcionalidad común a todos los servicios:
- Logging estructurado
- Acceso a base de datos
- Fronteras transaccionales
"""
from typing import Optional

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.logger import StructuredLogger, get_logger


class BaseService:
    """
    Clase base para todos los servicios.

    Los servicios encapsulan la lógica de negocio y orquestan
    operaciones entre varias entidades. Las rutas solo validan
    el acceso y serializan.
    """

    def __init__(
        self,
        db: Session,
        logger: Optional[StructuredLogger] = None
    ):
        """
        Args:
            db: Sesión de base de datos
            logger: Logger estructurado (opcional)
        """
        self.db = db
        self.logger = logger or get_logger()

    def _transaction(self):
        return transaction(self.db)

    def _log_info(self, message: str, **kwargs):
        self.logger.info(message, **kwargs)

    def _log_warning(self, message: str, **kwargs):
        self.logger.warning(message, **kwargs)

    def _log_error(self, message: str, error: Optional[Exception] = None, **kwargs):
        self.logger.error(message, error=error, **kwargs)
