"""Atomic set operations on association tables.

Membership collections (board members, the cards of a list, card assignees)
are association tables keyed by both ids, so adding or removing an element is
a single statement instead of a fetch / modify / save cycle on the parent row.
Two concurrent writers therefore cannot lose each other's update.
"""
from sqlalchemy import Table, and_, delete, exists, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core.exceptions import ConflictError


def _match(table: Table, key: dict):
    return and_(*(table.c[name] == value for name, value in key.items()))


async def add_to_set(db: AsyncSession, table: Table, **key) -> bool:
    """Insert ``key`` into ``table`` unless it is already there.

    Returns True when a row was inserted, False when the element was already
    present. A concurrent insert of the same element that wins the race shows
    up as a primary key violation; the session is rolled back and
    ConflictError is raised.
    """
    source = select(
        *(literal(value, type_=table.c[name].type).label(name) for name, value in key.items())
    ).where(~exists().where(_match(table, key)))
    stmt = insert(table).from_select(list(key), source)

    try:
        result = await db.execute(stmt)
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Concurrent update of {table.name}")
    return result.rowcount > 0


async def pull_from_set(db: AsyncSession, table: Table, **key) -> int:
    """Remove every row of ``table`` matching ``key``; returns the row count"""
    result = await db.execute(delete(table).where(_match(table, key)))
    return result.rowcount
