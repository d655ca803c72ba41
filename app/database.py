"""
Accès à la base de données avec SQLAlchemy.
Le moteur et la fabrique de sessions sont portés par un objet Database
construit au démarrage de l'application et fermé à l'arrêt.
"""

from contextlib import contextmanager
from typing import Generator, Optional
import time

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from app.core.logging import logger, log_slow_query


# Classe de base pour tous les modèles
Base = declarative_base()


class Database:
    """
    Moteur SQLAlchemy et fabrique de sessions.

    Usage:
        database = Database(settings.DATABASE_URL)
        with database.session() as db:
            users = db.query(User).all()
        database.dispose()
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        slow_query_ms: Optional[float] = None,
        **engine_options,
    ):
        # Dimensionnement réservé au pool par défaut (QueuePool)
        if not url.startswith("sqlite") and "poolclass" not in engine_options:
            engine_options.setdefault("pool_size", 10)
            engine_options.setdefault("max_overflow", 20)
            engine_options.setdefault("pool_timeout", 30)
            engine_options.setdefault("pool_recycle", 1800)
        engine_options.setdefault("pool_pre_ping", True)

        self.url = url
        self.engine: Engine = create_engine(url, echo=echo, **engine_options)
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )
        if slow_query_ms is not None:
            self._register_query_timing(slow_query_ms)

    def _register_query_timing(self, slow_query_ms: float) -> None:
        """Log les requêtes SQL plus lentes que le seuil donné."""

        @event.listens_for(self.engine, "before_cursor_execute")
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault("query_start_time", []).append(time.perf_counter())

        @event.listens_for(self.engine, "after_cursor_execute")
        def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            duration_ms = (time.perf_counter() - conn.info["query_start_time"].pop(-1)) * 1000
            if duration_ms > slow_query_ms:
                log_slow_query(statement, duration_ms)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager transactionnel pour utilisation hors requête HTTP.
        """
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception as e:
            logger.error(f"Erreur de transaction: {e}")
            db.rollback()
            raise
        finally:
            db.close()

    def check_connection(self) -> bool:
        """
        Vérifie que la connexion à la base de données fonctionne.

        Returns:
            True si la connexion est établie, False sinon
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Impossible de se connecter à la base de données: {e}")
            return False

    def create_all(self) -> None:
        """
        Crée toutes les tables.
        À utiliser uniquement en développement ou pour les tests;
        en production, utiliser Alembic.
        """
        # Enregistre tous les modèles sur Base.metadata
        import app.models  # noqa: F401

        logger.info("Initialisation de la base de données...")
        Base.metadata.create_all(bind=self.engine)
        logger.info("Tables créées avec succès")

    def dispose(self) -> None:
        """Ferme toutes les connexions du pool."""
        self.engine.dispose()
        logger.info("Connexions à la base de données fermées")


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Générateur de session de base de données pour l'injection de dépendances.

    Yields:
        Session SQLAlchemy active

    Usage:
        @router.get("/users")
        def get_users(db: Session = Depends(get_db)):
            return db.query(User).all()
    """
    database: Database = request.app.state.database
    db = database.session_factory()
    try:
        yield db
    except Exception as e:
        logger.error(f"Erreur lors de l'utilisation de la session: {e}")
        db.rollback()
        raise
    finally:
        db.close()


__all__ = [
    "Base",
    "Database",
    "get_db",
]
