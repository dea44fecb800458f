from pathlib import Path

from dotenv import load_dotenv

import app.models  # noqa: F401  registra todas las tablas en Base.metadata
from app.core.database import Base, get_engine
from app.core.logger import get_logger

BASE_DIR = Path(__file__).resolve().parent.parent.parent

logger = get_logger()


# =========================================================
# INIT DB
# =========================================================

def create_tables(engine=None) -> list[str]:
    """
    Crea las tablas que falten (idempotente).

    Returns:
        Nombres de las tablas registradas
    """
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)

    tables = sorted(Base.metadata.tables.keys())
    logger.info("Tablas creadas / registradas", action="init_db", tables=len(tables))
    return tables


def main():
    load_dotenv(BASE_DIR / ".env")
    tables = create_tables()

    print("✅ Tablas creadas / registradas en SQLAlchemy:")
    for table in tables:
        print(f"   - {table}")

    print(f"\n📊 Total tablas: {len(tables)}")


if __name__ == "__main__":
    main()
