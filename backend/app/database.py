"""
Configuration de la connexion à la base de données.
PostgreSQL en production, SQLite en développement local et pour les tests.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from app.config import settings


def build_engine(url: str, **kwargs):
    """
    Crée un moteur SQLAlchemy avec un délai borné sur chaque requête.
    Une requête bloquée sur un verrou échoue au lieu d'attendre indéfiniment.
    Sous SQLite, chaque transaction prend le verrou d'écriture dès son ouverture.
    """
    timeout_ms = settings.DB_STATEMENT_TIMEOUT_MS

    if url.startswith("postgresql"):
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("connect_args", {
            "options": f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}",
        })
    elif url.startswith("sqlite"):
        # FastAPI sert les requêtes sur plusieurs threads
        connect_args = kwargs.setdefault("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", timeout_ms / 1000)

    new_engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def _configure_sqlite(dbapi_connection, connection_record):
            # pysqlite ne doit pas émettre son propre BEGIN différé (voir _begin_immediate)
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(new_engine, "begin")
        def _begin_immediate(conn):
            """
            SQLite ignore FOR UPDATE : le verrou d'écriture est pris dès l'ouverture
            de la transaction, avant la première lecture. Deux écritures sur le même
            étudiant sont ainsi sérialisées et la seconde relit le relevé validé.
            """
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return new_engine


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI — fournit une session BDD et la ferme après usage."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Crée les tables manquantes (appelé au démarrage de l'API)."""
    Base.metadata.create_all(bind=engine)
