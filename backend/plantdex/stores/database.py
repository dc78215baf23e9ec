"""
PlantDex Backend — Database Record Store
=========================================

What:  Durable RecordStore on async SQLAlchemy (asyncpg in production,
       aiosqlite in tests).
How:   One session and one transaction per operation. The store owns its
       engine and disposes it in close().

Error Handling Strategy:
    SQLAlchemy errors are logged with their details and re-raised as
    StorageError, which the API turns into a generic 500. A unique-username
    violation is the one driver error translated into something the client
    can act on (ConflictError).

Concurrency:
    Identifier assignment is left to the database (serial column, insert
    and id returned in one round trip), so concurrent create_plant calls
    need no locking here.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from plantdex.database import Base, build_engine, build_session_factory
from plantdex.exceptions import ConflictError, StorageError
from plantdex.models import Plant, User
from plantdex.schemas.plant import PlantFields, PlantRecord
from plantdex.schemas.user import UserRecord
from plantdex.stores.base import RecordStore

logger = logging.getLogger(__name__)


class DatabaseRecordStore(RecordStore):
    """RecordStore backed by a relational database."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        self.engine = engine
        self._session_factory = session_factory or build_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "DatabaseRecordStore":
        return cls(build_engine(database_url))

    @property
    def backend_name(self) -> str:
        return "database"

    async def create_schema(self) -> None:
        """
        Create all tables that do not exist yet.

        Used by tests and DATABASE_AUTO_CREATE; production schemas are
        managed with Alembic.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # ── Users ─────────────────────────────────────────────────────────────

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        try:
            async with self._session_factory() as session:
                user = await session.get(User, user_id)
                return UserRecord.model_validate(user) if user else None
        except SQLAlchemyError as e:
            raise self._storage_error("get_user", e, user_id=user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(User).where(User.username == username)
                )
                user = result.scalar_one_or_none()
                return UserRecord.model_validate(user) if user else None
        except SQLAlchemyError as e:
            raise self._storage_error("get_user_by_username", e)

    async def create_user(self, username: str, password_hash: str) -> UserRecord:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    user = User(username=username, password_hash=password_hash)
                    session.add(user)
                    await session.flush()
                    record = UserRecord.model_validate(user)
                logger.info("User created: id=%d", record.id)
                return record
        except IntegrityError:
            # Why catch here: two registrations racing for the same name both
            # pass the service's existence check; the unique index decides.
            raise ConflictError(
                message="Username already exists",
                context={"username": username},
            )
        except SQLAlchemyError as e:
            raise self._storage_error("create_user", e)

    # ── Plants ────────────────────────────────────────────────────────────

    async def list_plants(self, user_id: int) -> List[PlantRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Plant).where(Plant.user_id == user_id).order_by(Plant.id)
                )
                return [PlantRecord.model_validate(p) for p in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._storage_error("list_plants", e, user_id=user_id)

    async def get_plant(self, plant_id: int) -> Optional[PlantRecord]:
        try:
            async with self._session_factory() as session:
                plant = await session.get(Plant, plant_id)
                return PlantRecord.model_validate(plant) if plant else None
        except SQLAlchemyError as e:
            raise self._storage_error("get_plant", e, plant_id=plant_id)

    async def create_plant(self, user_id: int, fields: PlantFields) -> PlantRecord:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    plant = Plant(user_id=user_id, **fields.model_dump())
                    session.add(plant)
                    await session.flush()
                    await session.refresh(plant)
                    record = PlantRecord.model_validate(plant)
                logger.info("Plant record created: id=%d user=%d", record.id, user_id)
                return record
        except SQLAlchemyError as e:
            raise self._storage_error("create_plant", e, user_id=user_id)

    async def delete_plant(self, plant_id: int) -> bool:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(Plant).where(Plant.id == plant_id)
                    )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise self._storage_error("delete_plant", e, plant_id=plant_id)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self.engine.dispose()

    @staticmethod
    def _storage_error(operation: str, error: Exception, **context) -> StorageError:
        logger.error("Database error in %s: %s", operation, str(error), exc_info=True)
        return StorageError(
            context={"operation": operation, "error_type": type(error).__name__, **context},
        )
