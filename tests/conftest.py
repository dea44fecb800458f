"""
Fixtures pytest del portal.

El entorno se fija ANTES de importar la app: la configuración y el
limitador se leen al importar.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-con-longitud-suficiente-0123456789"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_FILE"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["PERPLEXITY_API_KEY"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.config import reload_settings  # noqa: E402
from app.core.database import Base, get_db  # noqa: E402
from app.core.security import create_session_token  # noqa: E402
from app.models.user import Rol  # noqa: E402
from app.services.cases import CaseService  # noqa: E402
from app.services.users import UserService  # noqa: E402

reload_settings()

PASSWORD = "Secret1"


@pytest.fixture(scope="function")
def session_factory():
    """BD en memoria en una única conexión compartida entre hilos (TestClient)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Sesión para preparar datos y comprobar resultados."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(session_factory, db_session):
    """
    TestClient con get_db apuntando a la BD de test.

    Cada request abre su propia sesión, como en producción; tras una
    llamada, `db_session.expire_all()` descarta lo cacheado en el test.
    """
    from app.main import app

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =========================================================
# FACTORÍAS
# =========================================================

@pytest.fixture
def make_user(db_session):
    def _make(rol: Rol = Rol.CLIENTE, email: str = None, nombre: str = None, **extra):
        n = len(_make.created) + 1
        user = UserService(db_session).build_user(
            nombre=nombre or f"{rol.value.capitalize()} {n}",
            email=email or f"{rol.value}{n}@test.com",
            password=extra.pop("password", PASSWORD),
            rol=rol,
            **extra,
        )
        db_session.commit()
        _make.created.append(user)
        return user

    _make.created = []
    return _make


@pytest.fixture
def make_case(db_session):
    def _make(cliente, abogado=None, **campos):
        expediente = CaseService(db_session).build_case(
            cliente,
            abogado_asignado_id=abogado.id if abogado else None,
            **campos,
        )
        db_session.commit()
        db_session.refresh(expediente)
        return expediente

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(Rol.ADMIN, email="admin@test.com", nombre="Admin")


@pytest.fixture
def abogado(make_user):
    return make_user(Rol.ABOGADO, email="abogado@test.com", nombre="Laura Abogada")


@pytest.fixture
def cliente(make_user):
    return make_user(Rol.CLIENTE, email="cliente@test.com", nombre="María Cliente")


@pytest.fixture
def expediente(make_case, cliente, abogado):
    return make_case(cliente, abogado, referencia="LSO-2024-001")


def auth_headers(user, now=None) -> dict:
    """Cabecera Bearer con un token de sesión válido para `user`."""
    token = create_session_token(
        user_id=user.id,
        email=user.email,
        nombre=user.nombre,
        rol=user.rol,
        now=now,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
