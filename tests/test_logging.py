"""
TESTS DEL LOGGING ESTRUCTURADO.
"""
import json
import logging

from app.core.logger import REDACTED, JsonFormatter, StructuredLogger, redact


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines = []

    def emit(self, record):
        self.lines.append(json.loads(JsonFormatter().format(record)))


def _logger():
    base = logging.getLogger("deudasacero.test")
    base.setLevel(logging.DEBUG)
    base.propagate = False
    handler = _ListHandler()
    base.handlers = [handler]
    return StructuredLogger(base), handler


def test_redact_oculta_credenciales_y_descarta_nulos():
    data = redact({"password": "Secret1", "contenido": "base64...", "user_id": "u1", "rol": None})
    assert data == {"password": REDACTED, "contenido": REDACTED, "user_id": "u1"}


def test_evento_json_con_correlacion():
    log, handler = _logger()
    log.info("Fase cambiada", case_id="exp-1", action="phase_changed", fase=5)

    evento = handler.lines[0]
    assert evento["level"] == "INFO"
    assert evento["case_id"] == "exp-1"
    assert evento["action"] == "phase_changed"
    assert evento["fase"] == 5


def test_bind_no_modifica_el_padre():
    log, handler = _logger()
    hijo = log.bind(path="/expedientes", token="abc")

    hijo.warning("Acceso denegado", action="access_denied")
    log.warning("Otro evento")

    assert handler.lines[0]["path"] == "/expedientes"
    assert handler.lines[0]["token"] == REDACTED
    assert "path" not in handler.lines[1]


def test_error_incluye_tipo_de_excepcion():
    log, handler = _logger()
    log.error("Fallo", action="x", error=ValueError("malo"))
    assert handler.lines[0]["error_type"] == "ValueError"
    assert handler.lines[0]["error_message"] == "malo"


def test_configure_logging_escribe_fichero(tmp_path):
    """Test: LOG_FILE recibe una línea JSON por evento."""
    from app.core.logger import configure_logging

    log_file = tmp_path / "logs" / "deudasacero.log"
    log = StructuredLogger(configure_logging("deudasacero.fichero", "INFO", log_file))

    log.debug("No aparece")
    log.info("Login correcto", action="auth_login", user_id="u1")

    lineas = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lineas) == 1
    assert json.loads(lineas[0])["action"] == "auth_login"
