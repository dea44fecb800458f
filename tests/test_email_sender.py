"""
TESTS DEL ENVÍO DE EMAIL (Resend) Y DE LAS PLANTILLAS.

SIN red: requests.post se sustituye por un mock.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.core.config import reload_settings
from app.services.email_sender import EmailSendError, send_email
from app.services.email_templates import (
    PREVIEW_CHARS,
    document_request_template,
    new_message_template,
    phase_change_template,
)
from app.services.notifications import deliver_best_effort


@pytest.fixture
def resend_key(monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    reload_settings()
    yield
    monkeypatch.undo()
    reload_settings()


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = "error"
    response.json.return_value = body or {}
    return response


class TestSendEmail:

    @patch("app.services.email_sender.requests.post")
    def test_sin_api_key_simula(self, mock_post):
        result = send_email(to="a@test.com", subject="Hola", html="<p>Hola</p>")
        assert result.simulated is True
        assert result.to == ["a@test.com"]
        mock_post.assert_not_called()

    def test_destinatario_vacio(self):
        with pytest.raises(EmailSendError):
            send_email(to=["", None], subject="x", html="x")

    @patch("app.services.email_sender.requests.post")
    def test_envio_real(self, mock_post, resend_key):
        mock_post.return_value = _response(200, {"id": "msg_1"})

        result = send_email(to="a@test.com", subject="Hola", html="<p>Hola</p>", text="Hola")

        assert result.simulated is False
        assert result.provider_id == "msg_1"
        kwargs = mock_post.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer re_test"
        assert kwargs["json"]["to"] == ["a@test.com"]
        assert kwargs["json"]["text"] == "Hola"

    @patch("app.services.email_sender.requests.post")
    def test_respuesta_no_2xx(self, mock_post, resend_key):
        mock_post.return_value = _response(422)
        with pytest.raises(EmailSendError, match="422"):
            send_email(to="a@test.com", subject="x", html="x")

    @patch("app.services.email_sender.requests.post", side_effect=requests.ConnectionError("down"))
    def test_error_de_red(self, _mock, resend_key):
        with pytest.raises(EmailSendError):
            send_email(to="a@test.com", subject="x", html="x")


class TestBestEffort:

    def test_fallo_devuelve_none(self):
        def falla(*_args):
            raise EmailSendError("caído")

        assert deliver_best_effort(falla, "a@test.com", case_id="exp-1") is None

    def test_error_inesperado_tampoco_propaga(self):
        def revienta(*_args):
            raise KeyError("x")

        assert deliver_best_effort(revienta, "a@test.com") is None


class TestPlantillas:

    def test_cambio_de_fase(self):
        template = phase_change_template("Ana", 1, 5, "Fase 5", "Descripción", "LSO-2024-001")
        assert template.subject == "Actualización de tu expediente LSO-2024-001 - Fase 5: Fase 5"
        assert "Fase anterior: 1" in template.text

    def test_html_escapado(self):
        template = document_request_template("<b>Ana</b>", ["DNI/NIE"], "LSO-2024-001")
        assert "&lt;b&gt;Ana&lt;/b&gt;" in template.html
        assert "<li>DNI/NIE</li>" in template.html

    def test_preview_de_mensaje_largo(self):
        template = new_message_template("Ana", "Laura", "x" * (PREVIEW_CHARS + 50))
        assert "x" * PREVIEW_CHARS + "..." in template.text
