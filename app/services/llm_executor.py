"""
LLM EXECUTOR CENTRALIZADO (Perplexity, API compatible OpenAI).

Este módulo es el ÚNICO punto de entrada para ejecutar LLMs.

REGLAS:
- Ningún otro módulo crea clientes OpenAI.
- TODAS las llamadas a LLM pasan por execute_llm().
- Sin API key la ejecución falla con LLMNotAvailableException.
- La generación es el entregable del endpoint: un fallo se propaga
  como LLMException (500 con detalles), no se degrada en silencio.
"""
import time
from datetime import datetime
from typing import Optional

import openai
from openai import OpenAI
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import get_settings
from app.core.exceptions import LLMException, LLMNotAvailableException
from app.core.logger import get_logger

logger = get_logger()

# Errores transitorios que merecen reintento
_RETRYABLE_ERRORS = (openai.APITimeoutError, openai.APIConnectionError, openai.RateLimitError)


# ========================================
# RESULTADO DE EJECUCIÓN
# ========================================

class LLMExecutionResult(BaseModel):
    """Resultado de una ejecución correcta de LLM."""

    output_text: str = Field(..., description="Texto generado por el LLM")

    citations: list[str] = Field(
        default_factory=list,
        description="Fuentes citadas (modelos con acceso a internet)",
    )

    retries_used: int = Field(default=0, description="Número de reintentos realizados")

    model_used: str = Field(..., description="Modelo usado")

    latency_ms: Optional[float] = Field(default=None, description="Latencia total de ejecución")

    task_name: str = Field(..., description="Nombre de la tarea ejecutada")

    executed_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(extra="forbid")


# ========================================
# EXECUTOR PRINCIPAL
# ========================================

def execute_llm(
    *,
    task_name: str,
    prompt_system: str,
    prompt_user: str,
    model: Optional[str] = None,
    max_retries: Optional[int] = None,
    timeout_seconds: Optional[int] = None,
    max_tokens: Optional[int] = None,
    temperature: float = 0.5,
) -> LLMExecutionResult:
    """
    Ejecuta un LLM.

    Args:
        task_name: Nombre de la tarea (para logging)
        prompt_system: System prompt
        prompt_user: User prompt
        model: Modelo (default: LLM_MODEL)
        max_retries: Reintentos ante timeout/conexión (default: LLM_MAX_RETRIES)
        timeout_seconds: Timeout por intento (default: LLM_TIMEOUT_SECONDS)
        max_tokens: Tokens máximos a generar (default: LLM_MAX_TOKENS)
        temperature: Temperatura de muestreo

    Returns:
        LLMExecutionResult

    Raises:
        LLMNotAvailableException: PERPLEXITY_API_KEY no configurada
        LLMException: la API falló tras los reintentos o devolvió vacío
    """
    settings = get_settings()
    if not settings.llm_available:
        logger.warning("LLM no disponible", action="llm_unavailable", task=task_name)
        raise LLMNotAvailableException()

    model = model or settings.llm_model
    max_retries = settings.llm_max_retries if max_retries is None else max_retries
    timeout_seconds = timeout_seconds or settings.llm_timeout_seconds
    max_tokens = max_tokens or settings.llm_max_tokens

    start_time = time.time()
    last_error: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        try:
            text, citations = _call_llm_api(
                prompt_system=prompt_system,
                prompt_user=prompt_user,
                model=model,
                timeout_seconds=timeout_seconds,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except _RETRYABLE_ERRORS as e:
            last_error = e
            logger.warning(
                "Error transitorio de LLM",
                action="llm_retry",
                task=task_name,
                model=model,
                attempt=attempt + 1,
                error_type=type(e).__name__,
            )
            if attempt < max_retries:
                time.sleep(1)
                continue
            break
        except openai.OpenAIError as e:
            last_error = e
            break

        if not text or not text.strip():
            raise LLMException(
                "El modelo no devolvió contenido",
                details={"task": task_name, "model": model},
            )

        latency_ms = (time.time() - start_time) * 1000
        logger.info(
            "LLM ejecutado",
            action="llm_call",
            task=task_name,
            model=model,
            attempt=attempt + 1,
            latency_ms=round(latency_ms, 1),
        )
        return LLMExecutionResult(
            output_text=text,
            citations=citations,
            retries_used=attempt,
            model_used=model,
            latency_ms=latency_ms,
            task_name=task_name,
        )

    logger.error(
        "Fallo de LLM",
        action="llm_failed",
        task=task_name,
        model=model,
        error=last_error,
    )
    raise LLMException(
        "Error generando contenido con IA",
        details={"task": task_name, "model": model, "reason": str(last_error)},
        original_error=last_error,
    )


# ========================================
# HELPER: Llamada real a API
# ========================================

def _call_llm_api(
    *,
    prompt_system: str,
    prompt_user: str,
    model: str,
    timeout_seconds: int,
    max_tokens: int,
    temperature: float,
) -> tuple[str, list[str]]:
    """
    Llamada real a la API.

    Esta es la ÚNICA función que hace la llamada real.

    Returns:
        (texto generado, citas)
    """
    settings = get_settings()
    client = OpenAI(
        api_key=settings.perplexity_api_key,
        base_url=settings.perplexity_base_url,
        timeout=timeout_seconds,
        max_retries=0,
    )

    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": prompt_system},
            {"role": "user", "content": prompt_user},
        ],
        max_tokens=max_tokens,
        temperature=temperature,
    )

    text = response.choices[0].message.content if response.choices else ""
    # Perplexity añade `citations` fuera del esquema OpenAI
    citations = getattr(response, "citations", None) or []
    return text or "", [str(c) for c in citations]
