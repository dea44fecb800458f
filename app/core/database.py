from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import get_settings

Base = declarative_base()

# Singleton para el engine y session factory
_engine = None
_session_factory = None


def get_database_url() -> str:
    return get_settings().database_url


def get_engine():
    """Obtiene el engine de base de datos (singleton)."""
    global _engine

    if _engine is None:
        database_url = get_database_url()

        connect_args = {}
        if database_url.startswith("sqlite"):
            connect_args = {
                "check_same_thread": False,
                "timeout": 30,
            }

        _engine = create_engine(
            database_url,
            echo=False,
            connect_args=connect_args,
            pool_pre_ping=True,
        )

        if database_url.startswith("sqlite"):
            @event.listens_for(_engine, "connect")
            def set_sqlite_pragma(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                try:
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.execute("PRAGMA busy_timeout=30000")
                finally:
                    cursor.close()

    return _engine


def get_session_factory():
    """Obtiene el session factory (singleton)."""
    global _session_factory

    if _session_factory is None:
        engine = get_engine()
        _session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    return _session_factory


@contextmanager
def get_session():
    """
    Context manager para scripts (seed, init_db).
    Garantiza commit/rollback y cierre correcto.
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def transaction(db: Session):
    """
    Frontera transaccional sobre una sesión ya abierta (por request).

    Todo lo escrito dentro del bloque se confirma junto o se descarta junto.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


# =========================================================
# FASTAPI DEPENDENCY
# =========================================================

def get_db():
    """
    Dependency para FastAPI.
    Proporciona una sesión por request.

    NO hace commit automático: los servicios delimitan sus transacciones.
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
