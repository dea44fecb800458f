"""
Tests del LLM Executor con gestión de errores.

Verifica que:
- Sin API key → LLMNotAvailableException sin llamar a la API
- Retry funciona para errores transitorios
- Agotados los reintentos → LLMException con detalles
- Respuesta vacía → LLMException

SIN LLM real, SIN red.
Mocks estrictos.
"""
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from app.core.config import reload_settings
from app.core.exceptions import LLMException, LLMNotAvailableException
from app.services.llm_executor import _call_llm_api, execute_llm


def _timeout():
    return openai.APITimeoutError(request=httpx.Request("POST", "https://api.perplexity.ai"))


@pytest.fixture
def llm_key(monkeypatch):
    monkeypatch.setenv("PERPLEXITY_API_KEY", "pplx-test")
    reload_settings()
    yield
    monkeypatch.undo()
    reload_settings()


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("app.services.llm_executor.time.sleep"):
        yield


# ════════════════════════════════════════════════════════════════
# TEST 1: Sin API key → no disponible
# ════════════════════════════════════════════════════════════════


@patch("app.services.llm_executor._call_llm_api")
def test_llm_sin_api_key(mock_call):
    with pytest.raises(LLMNotAvailableException) as exc_info:
        execute_llm(task_name="test_task", prompt_system="System", prompt_user="User")

    assert exc_info.value.http_status == 500
    assert exc_info.value.to_dict()["code"] == "LLM_NOT_AVAILABLE"
    mock_call.assert_not_called()


# ════════════════════════════════════════════════════════════════
# TEST 2: Retry luego éxito
# ════════════════════════════════════════════════════════════════


@patch("app.services.llm_executor._call_llm_api")
def test_retry_then_success(mock_call, llm_key):
    mock_call.side_effect = [_timeout(), ("Texto generado", ["https://boe.es"])]

    result = execute_llm(
        task_name="test_task", prompt_system="System", prompt_user="User", max_retries=1
    )

    assert result.output_text == "Texto generado"
    assert result.citations == ["https://boe.es"]
    assert result.retries_used == 1
    assert result.model_used == "sonar-pro"
    assert mock_call.call_count == 2


# ════════════════════════════════════════════════════════════════
# TEST 3: Reintentos agotados
# ════════════════════════════════════════════════════════════════


@patch("app.services.llm_executor._call_llm_api")
def test_reintentos_agotados(mock_call, llm_key):
    mock_call.side_effect = _timeout()

    with pytest.raises(LLMException) as exc_info:
        execute_llm(task_name="test_task", prompt_system="S", prompt_user="U", max_retries=2)

    assert mock_call.call_count == 3
    assert exc_info.value.details["task"] == "test_task"


@patch("app.services.llm_executor._call_llm_api")
def test_error_no_transitorio_no_reintenta(mock_call, llm_key):
    mock_call.side_effect = openai.OpenAIError("invalid key")

    with pytest.raises(LLMException):
        execute_llm(task_name="test_task", prompt_system="S", prompt_user="U", max_retries=3)

    assert mock_call.call_count == 1


# ════════════════════════════════════════════════════════════════
# TEST 4: Respuesta vacía
# ════════════════════════════════════════════════════════════════


@patch("app.services.llm_executor._call_llm_api", return_value=("   ", []))
def test_respuesta_vacia(_mock, llm_key):
    with pytest.raises(LLMException) as exc_info:
        execute_llm(task_name="test_task", prompt_system="S", prompt_user="U")

    assert not isinstance(exc_info.value, LLMNotAvailableException)


# ════════════════════════════════════════════════════════════════
# TEST 5: Llamada real (cliente mockeado)
# ════════════════════════════════════════════════════════════════


@patch("app.services.llm_executor.OpenAI")
def test_call_llm_api_extrae_citas(mock_openai, llm_key):
    response = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Respuesta"))],
        citations=["https://boe.es/a", "https://boe.es/b"],
    )
    client = MagicMock()
    client.chat.completions.create.return_value = response
    mock_openai.return_value = client

    text, citations = _call_llm_api(
        prompt_system="S",
        prompt_user="U",
        model="sonar-pro",
        timeout_seconds=10,
        max_tokens=100,
        temperature=0.3,
    )

    assert text == "Respuesta"
    assert citations == ["https://boe.es/a", "https://boe.es/b"]
    assert mock_openai.call_args.kwargs["base_url"] == "https://api.perplexity.ai"
    assert client.chat.completions.create.call_args.kwargs["temperature"] == 0.3
