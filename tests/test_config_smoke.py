import pytest
from pydantic import ValidationError

from app.core.config import Settings, get_settings


@pytest.mark.smoke
def test_settings_load_smoke():
    settings = get_settings()

    # Debe poder importarse y tener los campos básicos.
    assert settings is not None
    assert settings.environment == "test"
    assert settings.database_url.startswith("sqlite://")
    assert settings.lawyer_inactivity_minutes == 30
    assert settings.cookie_secure is False


@pytest.mark.smoke
def test_produccion_exige_secreto_robusto():
    with pytest.raises(ValidationError):
        Settings(environment="production", jwt_secret="corto")

    settings = Settings(environment="production", jwt_secret="x" * 40)
    assert settings.cookie_secure is True


@pytest.mark.smoke
def test_database_url_invalida():
    with pytest.raises(ValidationError):
        Settings(database_url="mysql://localhost/db")


@pytest.mark.smoke
def test_log_file_vacio_desactiva_fichero():
    assert Settings(log_file="").log_file is None
