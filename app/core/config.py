"""
Configuración centralizada de Deudas a Cero con Pydantic Settings.

Este módulo concentra toda la configuración del portal:
- Validación automática de tipos
- Valores por defecto seguros (sin secretos embebidos)
- Separación por entornos (development/test/staging/production)
"""
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuración global del portal.

    Todas las variables se pueden sobrescribir con variables de entorno o `.env`.
    """

    # =========================================================
    # ENTORNO Y DEPLOYMENT
    # =========================================================

    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development", description="Entorno de ejecución"
    )

    app_name: str = Field(default="Deudas a Cero")

    app_version: str = Field(default="2.0.0")

    # =========================================================
    # DATABASE
    # =========================================================

    database_url: str = Field(
        default="sqlite:///./runtime/deudasacero.db",
        description="URL de conexión a base de datos",
    )

    # =========================================================
    # SESIÓN (JWT EN COOKIE)
    # =========================================================

    jwt_secret: Optional[str] = Field(
        default=None,
        description="Secreto HS256 para firmar la cookie de sesión (obligatorio)",
    )

    jwt_algorithm: str = Field(default="HS256")

    session_cookie_name: str = Field(default="session")

    session_expire_days: int = Field(default=7, ge=1, le=90)

    session_cookie_secure: Optional[bool] = Field(
        default=None,
        description="Cookie solo por HTTPS (por defecto: True en producción)",
    )

    lawyer_inactivity_minutes: int = Field(
        default=30,
        ge=1,
        description="Caducidad de sesión para el rol abogado, anclada al login",
    )

    rate_limit_enabled: bool = Field(default=True, description="Habilitar rate limiting")

    login_rate_limit: str = Field(default="10/minute")

    # =========================================================
    # EMAIL (RESEND)
    # =========================================================

    resend_api_key: Optional[str] = Field(
        default=None,
        description="API key de Resend (sin ella los envíos se simulan en el log)",
    )

    resend_api_url: str = Field(default="https://api.resend.com/emails")

    mail_from: str = Field(default="Deudas a Cero <noreply@deudasacero.com>")

    panel_url: str = Field(default="https://deudasacero-panel.vercel.app")

    email_timeout_seconds: int = Field(default=10, ge=1, le=120)

    # =========================================================
    # LLM (PERPLEXITY, API COMPATIBLE OPENAI)
    # =========================================================

    perplexity_api_key: Optional[str] = Field(
        default=None,
        description="API key de Perplexity (sin ella la generación IA falla)",
    )

    perplexity_base_url: str = Field(default="https://api.perplexity.ai")

    llm_model: str = Field(default="sonar-pro", description="Modelo con acceso a internet")

    llm_timeout_seconds: int = Field(default=60, ge=5, le=300)

    llm_max_retries: int = Field(default=1, ge=0, le=5)

    llm_max_tokens: int = Field(default=4000, ge=100, le=16000)

    # =========================================================
    # LOGS
    # =========================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    log_file: Optional[Path] = Field(
        default=Path("runtime/logs/deudasacero.log"),
        description="Fichero de log JSON (vacío para solo consola)",
    )

    # =========================================================
    # VALIDACIONES CUSTOM
    # =========================================================

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Valida formato de URL de base de datos."""
        if not v.startswith(("sqlite://", "postgresql://", "postgresql+psycopg2://")):
            raise ValueError(
                "database_url debe empezar con sqlite://, postgresql:// o postgresql+psycopg2://"
            )
        return v

    @field_validator("log_file", mode="before")
    @classmethod
    def validate_log_file(cls, v):
        """Cadena vacía desactiva el fichero de log."""
        if v in ("", None):
            return None
        return Path(v)

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """En producción el secreto JWT es obligatorio y robusto."""
        if self.environment == "production":
            if not self.jwt_secret or len(self.jwt_secret) < 32:
                raise ValueError("JWT_SECRET debe tener al menos 32 caracteres en producción")
        return self

    # =========================================================
    # PROPIEDADES COMPUTADAS
    # =========================================================

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def jwt_configured(self) -> bool:
        return bool(self.jwt_secret)

    @property
    def email_configured(self) -> bool:
        return bool(self.resend_api_key)

    @property
    def llm_available(self) -> bool:
        return bool(self.perplexity_api_key)

    @property
    def cookie_secure(self) -> bool:
        if self.session_cookie_secure is None:
            return self.is_production
        return self.session_cookie_secure

    model_config = SettingsConfigDict(
        # Ruta absoluta para que funcione independientemente del cwd.
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )


# =========================================================
# INSTANCIA GLOBAL (SINGLETON)
# =========================================================

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Obtiene la instancia global de configuración (singleton).

    Returns:
        Settings: Configuración global validada
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para tests).

    Returns:
        Settings: Nueva instancia de configuración
    """
    global _settings
    _settings = None
    return get_settings()
