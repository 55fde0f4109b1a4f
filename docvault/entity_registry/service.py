"""EntityRegistry: local handles for external (entity_type, external_id) pairs.

Entities are created on first reference and refreshed on every later one;
they are never deleted here.
"""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.exceptions import EntityNotFoundError
from docvault.models.base import utcnow
from docvault.models.entity import Entity

logger = logging.getLogger("docvault.entities")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class EntityRegistry:
    """Idempotent upsert and lookup of external entities."""

    @staticmethod
    async def upsert(
        db: AsyncSession,
        entity_type: str,
        external_entity_id: int,
        entity_name: str | None = None,
    ) -> Entity:
        """Create the entity, or refresh its name and updated_at on conflict.

        A repeat call without a name keeps the cached name.
        """
        now = utcnow()
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)

        if insert is not None:
            table = Entity.__table__
            stmt = insert(table).values(
                id=uuid.uuid4(),
                entity_type=entity_type,
                external_entity_id=external_entity_id,
                entity_name=entity_name,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.entity_type, table.c.external_entity_id],
                set_={
                    "entity_name": func.coalesce(stmt.excluded.entity_name, table.c.entity_name),
                    "updated_at": now,
                },
            )
            await db.execute(stmt)
        else:
            existing = await EntityRegistry._find(db, entity_type, external_entity_id)
            if existing is None:
                db.add(Entity(
                    entity_type=entity_type,
                    external_entity_id=external_entity_id,
                    entity_name=entity_name,
                ))
            else:
                if entity_name is not None:
                    existing.entity_name = entity_name
                existing.updated_at = now
            await db.flush()

        entity = await EntityRegistry._find(db, entity_type, external_entity_id)
        if entity is None:
            raise EntityNotFoundError(f"{entity_type}:{external_entity_id}")
        logger.debug("Upserted entity %s:%s (id=%s)", entity_type, external_entity_id, entity.id)
        return entity

    @staticmethod
    async def lookup(db: AsyncSession, entity_type: str, external_entity_id: int) -> Entity:
        entity = await EntityRegistry._find(db, entity_type, external_entity_id)
        if entity is None:
            raise EntityNotFoundError(f"{entity_type}:{external_entity_id}")
        return entity

    @staticmethod
    async def _find(db: AsyncSession, entity_type: str, external_entity_id: int) -> Entity | None:
        result = await db.execute(
            select(Entity)
            .where(
                Entity.entity_type == entity_type,
                Entity.external_entity_id == external_entity_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
