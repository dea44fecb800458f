"""
Fases del procedimiento de Ley de Segunda Oportunidad.

Escalera fija de 10 fases. `Phase` es el tipo valor que encapsula el
rango [1, 10] y la derivación del porcentaje de avance; cualquier entero
que llegue de fuera pasa por `Phase.of` antes de tocar un expediente.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.core.exceptions import ValidationException


@dataclass(frozen=True)
class FaseInfo:
    numero: int
    nombre: str
    descripcion: str
    duracion: str


FASES_LSO: tuple[FaseInfo, ...] = (
    FaseInfo(
        1,
        "Estudio Viabilidad",
        "Análisis de tu situación financiera y viabilidad del proceso LSO",
        "1-2 semanas",
    ),
    FaseInfo(
        2,
        "Presupuesto y Encargo",
        "Presentación de presupuesto profesional y firma de encargo",
        "1 semana",
    ),
    FaseInfo(
        3,
        "Recopilación Documentos",
        "Recopilación de toda la documentación necesaria para el proceso",
        "2-4 semanas",
    ),
    FaseInfo(
        4,
        "Presentación Demanda",
        "Presentación de la solicitud de concurso voluntario ante el juzgado",
        "1-2 semanas",
    ),
    FaseInfo(
        5,
        "Admisión a Concurso",
        "El juzgado admite el concurso y nombra mediador concursal",
        "4-8 semanas",
    ),
    FaseInfo(
        6,
        "Fase de Liquidación",
        "Liquidación del patrimonio disponible para pago a acreedores",
        "2-4 meses",
    ),
    FaseInfo(
        7,
        "Solicitud EPI",
        "Solicitud de Exoneración del Pasivo Insatisfecho (EPI)",
        "1-2 semanas",
    ),
    FaseInfo(
        8,
        "Resolución Judicial",
        "El juez concede o deniega la exoneración de deudas",
        "2-4 semanas",
    ),
    FaseInfo(
        9,
        "Plan de Pagos",
        "Si aplica, establecimiento del plan de pagos para deudas no exonerables",
        "3-5 años",
    ),
    FaseInfo(
        10,
        "Proceso Finalizado",
        "Tu proceso LSO ha concluido: resolución firme y expediente cerrado",
        "Completado",
    ),
)

MENSAJE_FASE_INVALIDA = "Fase inválida. Debe ser un número entre 1 y 10"


@dataclass(frozen=True, order=True)
class Phase:
    """Fase validada (1..10)."""

    numero: int

    MIN = 1
    MAX = 10

    @classmethod
    def of(cls, value: Any) -> "Phase":
        """
        Construye una fase validada.

        Acepta enteros o cadenas de dígitos ("5"). Rechaza booleanos,
        decimales con parte fraccionaria y valores fuera de [1, 10].

        Raises:
            ValidationException: fase ausente o fuera de rango
        """
        if value is None or isinstance(value, bool):
            raise ValidationException(MENSAJE_FASE_INVALIDA, field="fase")

        if isinstance(value, float):
            if not value.is_integer():
                raise ValidationException(MENSAJE_FASE_INVALIDA, field="fase")
            value = int(value)
        elif isinstance(value, str):
            stripped = value.strip()
            if not stripped.isdigit():
                raise ValidationException(MENSAJE_FASE_INVALIDA, field="fase")
            value = int(stripped)
        elif not isinstance(value, int):
            raise ValidationException(MENSAJE_FASE_INVALIDA, field="fase")

        if value < cls.MIN or value > cls.MAX:
            raise ValidationException(MENSAJE_FASE_INVALIDA, field="fase")

        return cls(value)

    @property
    def porcentaje(self) -> int:
        return round(self.numero / 10 * 100)

    @property
    def es_final(self) -> bool:
        return self.numero == self.MAX

    @property
    def info(self) -> FaseInfo:
        return FASES_LSO[self.numero - 1]

    def to_dict(self) -> dict:
        info = self.info
        return {
            "numero": self.numero,
            "nombre": info.nombre,
            "descripcion": info.descripcion,
            "duracion": info.duracion,
            "porcentaje": self.porcentaje,
        }


def fase_info(numero: int) -> FaseInfo | None:
    """Información de una fase almacenada (tolerante a datos fuera de rango)."""
    if 1 <= numero <= len(FASES_LSO):
        return FASES_LSO[numero - 1]
    return None
