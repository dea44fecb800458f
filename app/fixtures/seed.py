"""
Datos de demostración del portal.

Uso:
    python -m app.fixtures.seed
    deudasacero-seed

Idempotente: si el usuario admin ya existe no se toca nada.
"""
from datetime import datetime

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from app.core.database import get_session, transaction
from app.core.init_db import create_tables
from app.core.logger import get_logger
from app.models.documento import Documento
from app.models.faq import FAQ
from app.models.mensaje import Mensaje
from app.models.schemas import DeudaInput
from app.models.user import Rol, Usuario
from app.services.cases import CaseService
from app.services.users import UserService, normalize_email

logger = get_logger()

ADMIN_EMAIL = "admin@deudasacero.es"

USUARIOS = {
    "admin": dict(
        nombre="Administrador", email=ADMIN_EMAIL, password="Admin123!",
        rol=Rol.ADMIN, telefono="+34 900 123 456", nif="A12345678",
    ),
    "abogado": dict(
        nombre="Dr. Carlos Martínez", email="abogado@ejemplo.com", password="Abogado123!",
        rol=Rol.ABOGADO, telefono="+34 666 111 222",
    ),
    "cliente": dict(
        nombre="María García López", email="cliente@ejemplo.com", password="Cliente123!",
        rol=Rol.CLIENTE, telefono="+34 666 123 456", nif="12345678A",
    ),
    "cliente2": dict(
        nombre="Juan Rodríguez Pérez", email="cliente2@ejemplo.com", password="Cliente123!",
        rol=Rol.CLIENTE, telefono="+34 666 222 333", nif="87654321B",
    ),
}

FAQS = [
    (
        "¿Qué es la Ley de Segunda Oportunidad?",
        "La Ley de Segunda Oportunidad (LSO) es un mecanismo legal que permite a personas "
        "físicas en situación de insolvencia obtener la exoneración de deudas que no pueden "
        "pagar, siempre que cumplan ciertos requisitos de buena fe.",
    ),
    (
        "¿Quién puede acogerse a la LSO?",
        "Pueden acogerse personas físicas (particulares y autónomos) que se encuentren en "
        "situación de insolvencia. Es necesario demostrar buena fe y no haber sido condenado "
        "por ciertos delitos económicos.",
    ),
    (
        "¿Qué deudas se pueden exonerar?",
        "Se pueden exonerar deudas con entidades financieras (préstamos, tarjetas, hipotecas), "
        "proveedores, y en parte deudas públicas (Hacienda y Seguridad Social). Las deudas "
        "por alimentos no son exonerables.",
    ),
    (
        "¿Cuánto dura el proceso?",
        "El proceso completo suele durar entre 12 y 18 meses, dependiendo del juzgado y la "
        "complejidad del caso. Durante este tiempo se nombra un mediador concursal y se "
        "intenta llegar a un acuerdo con los acreedores.",
    ),
]


def _seed_users(db: Session) -> dict[str, Usuario]:
    users = UserService(db)
    return {clave: users.build_user(**datos) for clave, datos in USUARIOS.items()}


def _seed_cases(db: Session, usuarios: dict[str, Usuario]):
    cases = CaseService(db)
    abogado = usuarios["abogado"]

    exp1 = cases.build_case(
        usuarios["cliente"],
        referencia="LSO-2024-001",
        tipo_procedimiento="persona_fisica",
        porcentaje_avance=45,
        deudas=[
            DeudaInput(tipo="financiera", importe=25000, descripcion="Préstamo personal", acreedor="Banco Santander"),
            DeudaInput(tipo="financiera", importe=15000, descripcion="Tarjeta de crédito", acreedor="BBVA"),
            DeudaInput(tipo="publica", importe=3500, descripcion="Deuda tributaria", acreedor="AEAT"),
            DeudaInput(tipo="publica", importe=1200, descripcion="Cuotas SS autónomos", acreedor="Seguridad Social"),
            DeudaInput(tipo="proveedores", importe=5000, descripcion="Facturas pendientes", acreedor="Varios proveedores"),
        ],
        abogado_asignado_id=abogado.id,
        juzgado="Juzgado de Primera Instancia nº 5 de Madrid",
        fecha_presentacion=datetime(2024, 1, 15),
        situacion_laboral="Desempleado/a",
        estado_civil="soltero",
        numero_hijos=0,
    )
    exp1.fase_actual = 3

    exp2 = cases.build_case(
        usuarios["cliente2"],
        referencia="LSO-2024-002",
        tipo_procedimiento="autonomo",
        porcentaje_avance=10,
        deudas=[
            DeudaInput(tipo="financiera", importe=45000, descripcion="Préstamo ICO", acreedor="CaixaBank"),
            DeudaInput(tipo="publica", importe=8500, descripcion="Deuda Hacienda", acreedor="AEAT"),
        ],
        abogado_asignado_id=abogado.id,
        juzgado="Juzgado de Primera Instancia nº 3 de Barcelona",
        situacion_laboral="Autónomo",
        estado_civil="casado",
        numero_hijos=2,
    )
    return exp1, exp2


def _seed_documents(db: Session, expediente, cliente: Usuario) -> None:
    for nombre, tipo, estado, dia in (
        ("DNI.pdf", "DNI", "revisado", 10),
        ("IRPF_2023.pdf", "IRPF", "revisado", 12),
        ("Certificado_Paro.pdf", "certificado", "subido", 20),
        ("Vida_Laboral.pdf", "certificado", "revisado", 11),
    ):
        db.add(
            Documento(
                expediente_id=expediente.id,
                nombre=nombre,
                tipo=tipo,
                estado=estado,
                fecha_subida=datetime(2024, 1, dia),
                subido_por_id=cliente.id,
            )
        )


def _seed_messages(db: Session, expediente, usuarios: dict[str, Usuario]) -> None:
    for clave, texto, fecha in (
        (
            "admin",
            "Bienvenido/a al área de cliente de Deudas a Cero. Desde aquí podrá seguir el "
            "estado de su expediente y comunicarse con nosotros.",
            datetime(2024, 1, 15, 10, 0),
        ),
        ("cliente", "Muchas gracias. ¿Cuánto tiempo suele tardar el proceso?", datetime(2024, 1, 15, 14, 30)),
        (
            "abogado",
            "El proceso completo de la Ley de Segunda Oportunidad suele durar entre 12 y 18 meses.",
            datetime(2024, 1, 16, 9, 15),
        ),
    ):
        autor = usuarios[clave]
        db.add(
            Mensaje(
                expediente_id=expediente.id,
                usuario_id=autor.id,
                remitente=autor.rol,
                texto=texto,
                fecha_envio=fecha,
                leido=True,
            )
        )


def seed(db: Session) -> bool:
    """
    Carga los datos de demostración.

    Returns:
        True si se insertaron datos, False si ya existían
    """
    existente = db.query(Usuario).filter(Usuario.email == normalize_email(ADMIN_EMAIL)).first()
    if existente is not None:
        logger.info("Seed omitido: los datos ya existen", action="seed_skipped")
        return False

    with transaction(db):
        usuarios = _seed_users(db)
        exp1, _exp2 = _seed_cases(db, usuarios)
        _seed_documents(db, exp1, usuarios["cliente"])
        _seed_messages(db, exp1, usuarios)
        db.add_all(
            FAQ(pregunta=pregunta, respuesta=respuesta, orden=orden, activo=True)
            for orden, (pregunta, respuesta) in enumerate(FAQS, start=1)
        )

    logger.info("Seed completado", action="seed_completed", usuarios=len(USUARIOS))
    return True


def main():
    load_dotenv()
    create_tables()

    with get_session() as db:
        created = seed(db)

    if not created:
        print("ℹ️  La base de datos ya contiene los datos de demostración")
        return

    print("🎉 Seed completado")
    print("📧 CREDENCIALES DE PRUEBA:")
    for datos in USUARIOS.values():
        print(f"   {datos['rol'].value:8s} {datos['email']} / {datos['password']}")


if __name__ == "__main__":
    main()
