"""
Persistence gateway — by-id lookup, list-by-parent, insert, save, delete.
Driver IntegrityErrors are translated into domain errors here so services never see them.
"""

import logging
from typing import Any, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.orm.exc import StaleDataError

from brandsnap.database import Base
from brandsnap.exceptions import ConflictError, IntegrityViolationError, NotFoundError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def _translate_integrity_error(exc: IntegrityError) -> Exception:
    detail = str(exc.orig).lower()
    if "unique" in detail or "duplicate" in detail:
        return ConflictError("Entity already exists")
    if "foreign key" in detail:
        return IntegrityViolationError("Parent entity does not exist")
    return IntegrityViolationError("Integrity constraint violated")


async def find_by_id(db: AsyncSession, model: type[ModelT], entity_id: int) -> Optional[ModelT]:
    result = await db.execute(select(model).where(model.id == entity_id))
    return result.scalar_one_or_none()


async def get_by_id(db: AsyncSession, model: type[ModelT], entity_id: int) -> ModelT:
    """Like find_by_id but raises NotFoundError ("<Model> not found")."""
    entity = await find_by_id(db, model, entity_id)
    if entity is None:
        raise NotFoundError(f"{model.__name__} not found")
    return entity


async def list_by_parent(
    db: AsyncSession,
    model: type[ModelT],
    parent_column: InstrumentedAttribute,
    parent_id: Any,
) -> list[ModelT]:
    """Children of a parent in insertion order."""
    result = await db.execute(select(model).where(parent_column == parent_id).order_by(model.id))
    return list(result.scalars().all())


async def flush(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.info(f"Integrity error on flush: {e.orig}")
        raise _translate_integrity_error(e) from e


async def insert(db: AsyncSession, entity: ModelT) -> ModelT:
    db.add(entity)
    await flush(db)
    return entity


async def save(db: AsyncSession, entity: ModelT) -> ModelT:
    """Flush pending changes on an already-persistent entity."""
    try:
        await flush(db)
    except StaleDataError as e:
        # Row was deleted by another request since it was loaded
        await db.rollback()
        raise NotFoundError(f"{type(entity).__name__} not found") from e
    return entity


async def delete(db: AsyncSession, entity: Base) -> None:
    # Cascades through parent → children relationships before the row goes
    await db.delete(entity)
    await flush(db)


async def commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise _translate_integrity_error(e) from e
