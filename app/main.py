from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.admin import router as admin_router
from app.api.auth import router as auth_router
from app.api.documentos import router as documentos_router
from app.api.email import router as email_router
from app.api.expedientes import router as expedientes_router
from app.api.facturacion import router as facturacion_router
from app.api.facturas import router as facturas_router
from app.api.firmas import router as firmas_router
from app.api.mensajes import router as mensajes_router
from app.api.perfil import router as perfil_router
from app.api.public import router as public_router
from app.core.config import get_settings
from app.core.exceptions import DeudasException
from app.core.init_db import create_tables
from app.core.logger import get_logger
from app.core.security import limiter


# =========================================================
# CARGA DE ENTORNO
# =========================================================

load_dotenv()

logger = get_logger()
settings = get_settings()


# =========================================================
# FASTAPI APP (ENTRYPOINT ASGI)
# =========================================================

app = FastAPI(title=settings.app_name, version=settings.app_version)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth_router)
app.include_router(expedientes_router)
app.include_router(admin_router)
app.include_router(documentos_router)
app.include_router(mensajes_router)
app.include_router(facturacion_router)
app.include_router(facturas_router)
app.include_router(firmas_router)
app.include_router(email_router)
app.include_router(perfil_router)
app.include_router(public_router)


# =========================================================
# MANEJO DE ERRORES
# =========================================================

def _request_logger(request: Request):
    return logger.bind(path=request.url.path, method=request.method)


@app.exception_handler(DeudasException)
def handle_domain_error(request: Request, exc: DeudasException):
    log = _request_logger(request)
    emit = log.error if exc.http_status >= 500 else log.warning
    emit(exc.message, action="request_failed", code=exc.code, status=exc.http_status)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "campo": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "mensaje": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Datos inválidos", "code": "VALIDATION_ERROR", "details": details},
    )


@app.exception_handler(StarletteHTTPException)
def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    _request_logger(request).error("Error no controlado", action="unhandled_exception", error=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Error interno del servidor", "code": "INTERNAL_ERROR"},
    )


# =========================================================
# ARRANQUE
# =========================================================

@app.on_event("startup")
def ensure_schema():
    """Crea las tablas que falten fuera del entorno de tests."""
    if settings.environment != "test":
        create_tables()
