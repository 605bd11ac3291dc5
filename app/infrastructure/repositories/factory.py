import logging

from app.core.config import Settings
from app.infrastructure.database import build_engine, build_session_factory, init_db
from app.infrastructure.repositories.memory_repository import InMemoryInventoryRepository
from app.infrastructure.repositories.sql_repository import SqlInventoryRepository
from app.interfaces.IInventoryRepository import IInventoryRepository

logger = logging.getLogger(__name__)


def build_repository(settings: Settings) -> IInventoryRepository:
    """Pick the persistence backend named by STORAGE_BACKEND. Nothing connects yet."""
    if settings.STORAGE_BACKEND == "memory":
        logger.info("🗃️ Using in-memory storage (data is lost on restart).")
        return InMemoryInventoryRepository()

    engine = build_engine(settings.DATABASE_URL)
    logger.info(f"🗄️ Using SQL storage ({engine.url.get_backend_name()}).")
    return SqlInventoryRepository(build_session_factory(engine))


def prepare_storage(repository: IInventoryRepository, settings: Settings) -> bool:
    """Create tables for SQL backends, waiting for the database to come up."""
    if isinstance(repository, SqlInventoryRepository):
        return init_db(repository.engine, settings.DB_CONNECT_RETRIES, settings.DB_RETRY_WAIT_SECONDS)
    return True
