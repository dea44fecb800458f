"""
Checklist de documentación del expediente.

Plantillas fijas que se siembran al crear un expediente y la vinculación
heurística de documentos subidos con los huecos de la checklist.
"""
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.logger import get_logger
from app.models.documento import Documento
from app.models.expediente import ChecklistDocumento, Expediente

logger = get_logger()


# (nombre, obligatorio)
CHECKLIST_ESTANDAR: tuple[tuple[str, bool], ...] = (
    ("DNI/NIE", True),
    ("IRPF últimos 2 años", True),
    ("Vida laboral completa", True),
    ("Certificado paro (si aplica)", False),
    ("Certificado empadronamiento", True),
    ("Extractos bancarios 6 meses", True),
    ("Certificado AEAT deudas", True),
    ("Certificado Seguridad Social", True),
    ("Escrituras propiedades (si aplica)", False),
    ("Contrato trabajo actual", False),
    ("Últimas 3 nóminas", False),
    ("Título académico (si aplica)", False),
    ("Certificado antecedentes penales", True),
)

# Alta desde el panel de admin: sin escrituras ni título académico
_EXCLUIDOS_ONBOARDING = {"Escrituras propiedades (si aplica)", "Título académico (si aplica)"}

CHECKLIST_ONBOARDING: tuple[tuple[str, bool], ...] = tuple(
    item for item in CHECKLIST_ESTANDAR if item[0] not in _EXCLUIDOS_ONBOARDING
)


def seed_checklist(
    db: Session,
    expediente: Expediente,
    plantilla: Sequence[tuple[str, bool]] = CHECKLIST_ESTANDAR,
) -> list[ChecklistDocumento]:
    """
    Crea los huecos de la checklist a partir de una plantilla.

    No hace commit; se ejecuta dentro de la transacción del alta.
    """
    items = [
        ChecklistDocumento(
            expediente_id=expediente.id,
            nombre=nombre,
            orden=orden,
            obligatorio=obligatorio,
        )
        for orden, (nombre, obligatorio) in enumerate(plantilla, start=1)
    ]
    db.add_all(items)
    return items


def find_matching_item(
    items: Iterable[ChecklistDocumento], tipo: Optional[str]
) -> Optional[ChecklistDocumento]:
    """
    Primer hueco libre cuyo nombre contiene `tipo`.

    Reglas:
    - comparación por subcadena, sin distinguir mayúsculas
    - se recorre por `orden`; gana el primero, nunca se vinculan varios
    - los huecos ya vinculados se saltan
    - un tipo vacío no coincide con nada

    Dos huecos con nombres solapados compiten por el mismo documento: se
    queda el de menor orden.
    """
    if not tipo or not tipo.strip():
        return None

    needle = tipo.strip().lower()
    for item in sorted(items, key=lambda i: i.orden):
        if item.documento_id is None and needle in item.nombre.lower():
            return item
    return None


def link_document(db: Session, expediente: Expediente, documento: Documento) -> Optional[ChecklistDocumento]:
    """
    Vincula el documento al primer hueco de checklist que coincida.

    Returns:
        El hueco vinculado o None si ningún nombre coincide
    """
    item = find_matching_item(expediente.checklist, documento.tipo)
    if item is None:
        return None

    item.documento_id = documento.id
    logger.info(
        "Documento vinculado a checklist",
        case_id=expediente.id,
        action="checklist_link",
        documento_id=documento.id,
        checklist_item=item.nombre,
    )
    return item


def unlink_document(db: Session, documento_id: str) -> int:
    """Libera los huecos que apuntan a un documento (antes de borrarlo)."""
    return (
        db.query(ChecklistDocumento)
        .filter(ChecklistDocumento.documento_id == documento_id)
        .update({ChecklistDocumento.documento_id: None}, synchronize_session=False)
    )
