from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar, Optional, List, Type, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy import select, update
from pydantic import BaseModel

from common.core.otel_axiom_exporter import trace_span
from common.db.scoped import get_session

EntityType = TypeVar("EntityType")
DomainModelType = TypeVar("DomainModelType")
CreateModelType = TypeVar("CreateModelType", bound=BaseModel)
UpdateModelType = TypeVar("UpdateModelType", bound=BaseModel)


class BaseRepository(Generic[EntityType, DomainModelType]):
    """
    Base repository with support for both explicit and lazy session management.

    1. Explicit session: pass db_session to constructor; the caller owns the
       lifecycle.
    2. Lazy session (default): a session is acquired per operation and
       released immediately, so nothing is held across provider calls.
    """

    def __init__(
        self,
        entity_class: Type[EntityType],
        domain_class: Type[DomainModelType],
        db_session: Optional[AsyncSession] = None,
    ):
        self.entity_class = entity_class
        self.domain_class = domain_class
        self._explicit_session = db_session

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._explicit_session is not None:
            yield self._explicit_session
        else:
            async with get_session() as session:
                yield session

    def _entity_to_domain(self, entity: EntityType) -> DomainModelType:
        """Convert database entity to domain model."""
        return self.domain_class.model_validate(entity)

    def _entities_to_domain(self, entities: List[EntityType]) -> List[DomainModelType]:
        """Convert list of database entities to domain models."""
        return [self._entity_to_domain(entity) for entity in entities]

    @staticmethod
    def _insert_for(session: AsyncSession):
        """Dialect-specific insert() that supports ON CONFLICT."""
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise NotImplementedError(f"Upsert not supported for dialect {dialect}")

    async def _get_one_by(self, session: AsyncSession, **filters: Any):
        query = select(self.entity_class).filter_by(**filters)
        result = await session.execute(query)
        return result.scalar_one_or_none()

    @trace_span
    async def get(self, id: int) -> Optional[DomainModelType]:
        async with self._get_session() as session:
            entity = await session.get(self.entity_class, id)
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def get_by(self, **filters: Any) -> Optional[DomainModelType]:
        """Get a single entity matching equality filters on unique columns."""
        async with self._get_session() as session:
            entity = await self._get_one_by(session, **filters)
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def create(self, create_model: CreateModelType) -> DomainModelType:
        """Create a new entity from a typed create model."""
        data = create_model.model_dump(exclude_none=True)
        db_obj = self.entity_class(**data)
        async with self._get_session() as session:
            session.add(db_obj)
            await session.flush()
            await session.refresh(db_obj)
            return self._entity_to_domain(db_obj)

    @trace_span
    async def update(
        self, id: int, update_model: UpdateModelType
    ) -> Optional[DomainModelType]:
        """Update an entity with a typed update model."""
        data = update_model.model_dump(exclude_unset=True)
        if not data:
            return await self.get(id)

        async with self._get_session() as session:
            await session.execute(
                update(self.entity_class).where(self.entity_class.id == id).values(data)
            )
            await session.flush()
        return await self.get(id)

    @trace_span
    async def upsert(
        self,
        values: dict[str, Any],
        conflict_column: str,
        overwrite: bool = True,
    ) -> DomainModelType:
        """
        INSERT ... ON CONFLICT keyed by a unique column, then re-read the row.

        With overwrite=True every supplied column is replaced (full replace);
        with overwrite=False an existing row is left untouched.
        """
        async with self._get_session() as session:
            insert = self._insert_for(session)
            stmt = insert(self.entity_class).values(**values)
            if overwrite:
                stmt = stmt.on_conflict_do_update(
                    index_elements=[conflict_column],
                    set_={
                        column: stmt.excluded[column]
                        for column in values
                        if column != conflict_column
                    },
                )
            else:
                stmt = stmt.on_conflict_do_nothing(index_elements=[conflict_column])
            await session.execute(stmt)
            await session.flush()

            entity = await self._get_one_by(
                session, **{conflict_column: values[conflict_column]}
            )
            # Identity map may hold a pre-upsert copy
            await session.refresh(entity)
            return self._entity_to_domain(entity)
