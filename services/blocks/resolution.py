"""
services/blocks/resolution.py
Decides whether a candidate session slot falls inside an academy block.

A block applies to a slot when:
  - it is on the same date and its time range overlaps the slot's
    (block.start < slot.to and block.end > slot.from);
  - every dimension (branch, sport, package, program) matches: scope
    `all` always matches, scope `specific` matches only when the slot's
    id is one of the block's linked ids.

A `specific` scope with no linked ids never matches, and a slot without
a value for a dimension only matches blocks whose scope there is `all`.
Coaches are not a block dimension.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import Block, BlockScope

# (scope column, link relationship, id attribute on link and slot)
DIMENSIONS = (
    ("branch_scope", "branch_links", "branch_id"),
    ("sport_scope", "sport_links", "sport_id"),
    ("package_scope", "package_links", "package_id"),
    ("program_scope", "program_links", "program_id"),
)


@dataclass(frozen=True)
class Slot:
    date: date
    from_time: time
    to_time: time
    branch_id: Optional[int] = None
    sport_id: Optional[int] = None
    package_id: Optional[int] = None
    program_id: Optional[int] = None
    coach_id: Optional[int] = None


def _dimension_matches(scope, linked_ids: set, candidate: Optional[int]) -> bool:
    if scope == BlockScope.ALL:
        return True
    return candidate is not None and candidate in linked_ids


def block_applies(block: Block, slot: Slot) -> bool:
    if block.date != slot.date:
        return False
    if not (block.start_time < slot.to_time and block.end_time > slot.from_time):
        return False
    for scope_attr, links_attr, key in DIMENSIONS:
        linked = {getattr(link, key) for link in getattr(block, links_attr)}
        if not _dimension_matches(getattr(block, scope_attr), linked, getattr(slot, key)):
            return False
    return True


def blocking_blocks(blocks: Iterable[Block], slot: Slot) -> list[Block]:
    return [b for b in blocks if block_applies(b, slot)]


def is_blocked(blocks: Iterable[Block], slot: Slot) -> bool:
    return any(block_applies(b, slot) for b in blocks)


async def load_blocks(db: AsyncSession, academy_id: int, start: date, end: date) -> list[Block]:
    """All blocks of an academy dated within [start, end], links included."""
    result = await db.execute(
        select(Block)
        .where(Block.academic_id == academy_id, Block.date >= start, Block.date <= end)
        .order_by(Block.date, Block.start_time)
    )
    return list(result.scalars())
