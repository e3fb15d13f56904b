"""
services/blocks/router.py
Academy blocks: time-boxed closures scoped per branch, sport, package
and program. Create, list, delete, form options and slot checks.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from services.blocks.resolution import Slot, blocking_blocks, load_blocks
from shared.middleware.auth import get_current_academy
from shared.models.models import (
    Academy,
    Block,
    BlockBranch,
    BlockPackage,
    BlockProgram,
    BlockScope,
    BlockSport,
    Branch,
    Package,
    Program,
    Sport,
)
from shared.schemas.schemas import (
    BlockCreateRequest,
    BlockResponse,
    IdsRequest,
    MessageResponse,
    SlotCheckRequest,
)
from shared.utils.errors import field_error
from shared.utils.junctions import link_ids
from shared.utils.translations import display_name

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blocks", tags=["Blocks"])

# request field -> (scope column, link relationship, link model, link key)
SCOPES = {
    "branches": ("branch_scope", "branch_links", BlockBranch, "branch_id"),
    "sports": ("sport_scope", "sport_links", BlockSport, "sport_id"),
    "packages": ("package_scope", "package_links", BlockPackage, "package_id"),
    "programs": ("program_scope", "program_links", BlockProgram, "program_id"),
}


def block_payload(block: Block) -> BlockResponse:
    return BlockResponse(
        id=block.id,
        date=block.date,
        start_time=block.start_time,
        end_time=block.end_time,
        note=block.note,
        branch_scope=block.branch_scope.value,
        sport_scope=block.sport_scope.value,
        package_scope=block.package_scope.value,
        program_scope=block.program_scope.value,
        **{field: link_ids(getattr(block, rel), key) for field, (_, rel, _, key) in SCOPES.items()},
    )


# ── Academy ownership ─────────────────────────────────────────

async def _academy_sport_ids(db: AsyncSession, academy: Academy) -> set[int]:
    """Sports the academy offers directly or through any of its branches."""
    result = await db.execute(select(Branch).where(Branch.academic_id == academy.id))
    ids = set(link_ids(academy.sport_links, "sport_id"))
    for branch in result.scalars():
        ids.update(link_ids(branch.sport_links, "sport_id"))
    return ids


async def _owned_ids(db: AsyncSession, academy: Academy, field: str, ids: list[int]) -> set[int]:
    if field == "branches":
        query = select(Branch.id).where(Branch.id.in_(ids), Branch.academic_id == academy.id)
    elif field == "programs":
        query = select(Program.id).where(Program.id.in_(ids), Program.academic_id == academy.id)
    elif field == "packages":
        query = (
            select(Package.id)
            .join(Program, Program.id == Package.program_id)
            .where(Package.id.in_(ids), Program.academic_id == academy.id)
        )
    else:
        return set(ids) & await _academy_sport_ids(db, academy)
    return set((await db.execute(query)).scalars())


# ── Endpoints ─────────────────────────────────────────────────

@router.get("", response_model=list[BlockResponse])
async def list_blocks(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    query = select(Block).where(Block.academic_id == academy.id)
    if start:
        query = query.where(Block.date >= start)
    if end:
        query = query.where(Block.date <= end)
    result = await db.execute(query.order_by(Block.date, Block.start_time))
    return [block_payload(b) for b in result.scalars()]


@router.post("", response_model=BlockResponse, status_code=201)
async def create_block(
    data: BlockCreateRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a block. Each dimension is "all" or a list of the academy's ids.
    Refused when another block of the academy overlaps it on that date.
    """
    if data.start_time >= data.end_time:
        raise field_error("End time must be after start time", "end_time")

    clash = await db.execute(
        select(Block.id).where(
            Block.academic_id == academy.id,
            Block.date == data.date,
            Block.start_time < data.end_time,
            Block.end_time > data.start_time,
        )
    )
    if clash.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A block already exists for this time range",
        )

    fields = {}
    for field, (scope_attr, rel, model, key) in SCOPES.items():
        value = getattr(data, field)
        if value == "all":
            fields[scope_attr] = BlockScope.ALL
            fields[rel] = []
            continue
        wanted = list(dict.fromkeys(value))
        owned = await _owned_ids(db, academy, field, wanted) if wanted else set()
        missing = set(wanted) - owned
        if missing:
            raise field_error(f"Unknown {field}: {sorted(missing)}", field, status.HTTP_404_NOT_FOUND)
        fields[scope_attr] = BlockScope.SPECIFIC
        fields[rel] = [model(**{key: i}) for i in wanted]

    block = Block(
        academic_id=academy.id,
        date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        note=data.note,
        **fields,
    )
    db.add(block)
    await db.commit()
    logger.info(f"Block {block.id} created for academy {academy.id} on {block.date}")
    return block_payload(block)


@router.post("/check")
async def check_slot(
    data: SlotCheckRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Whether any of the academy's blocks covers the given slot."""
    blocks = await load_blocks(db, academy.id, data.date, data.date)
    slot = Slot(**data.model_dump())
    hits = blocking_blocks(blocks, slot)
    return {"blocked": bool(hits), "block_ids": [b.id for b in hits]}


@router.get("/options")
async def get_block_options(
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    """Branches, sports, packages and programs selectable in the block form, cross-referenced."""
    branches = list((await db.execute(
        select(Branch).where(Branch.academic_id == academy.id).order_by(Branch.id)
    )).scalars())
    programs = list((await db.execute(
        select(Program).where(Program.academic_id == academy.id).order_by(Program.id)
    )).scalars())

    sport_ids = await _academy_sport_ids(db, academy)
    sports = []
    if sport_ids:
        sports = list((await db.execute(
            select(Sport).where(Sport.id.in_(sport_ids)).order_by(Sport.id)
        )).scalars())

    return {
        "branches": [
            {
                "id": b.id,
                "name": display_name(b.translations),
                "sports": link_ids(b.sport_links, "sport_id"),
                "programs": [p.id for p in programs if p.branch_id == b.id],
            }
            for b in branches
        ],
        "sports": [
            {
                "id": s.id,
                "name": display_name(s.translations),
                "programs": [p.id for p in programs if p.sport_id == s.id],
            }
            for s in sports
        ],
        "packages": [
            {"id": pk.id, "name": pk.name, "sport_id": p.sport_id, "programs": [p.id]}
            for p in programs
            for pk in p.packages
        ],
        "programs": [
            {
                "id": p.id,
                "name": p.name or "",
                "branch_ids": [p.branch_id] if p.branch_id else [],
                "sport_ids": [p.sport_id] if p.sport_id else [],
            }
            for p in programs
        ],
    }


@router.delete("", response_model=MessageResponse)
async def delete_blocks(
    data: IdsRequest,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        delete(Block).where(Block.id.in_(data.ids), Block.academic_id == academy.id)
    )
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} blocks")


@router.delete("/{block_id}", response_model=MessageResponse)
async def delete_block(
    block_id: int,
    academy: Academy = Depends(get_current_academy),
    db: AsyncSession = Depends(get_db),
):
    block = await db.get(Block, block_id)
    if not block or block.academic_id != academy.id:
        raise HTTPException(status_code=404, detail="Block not found")
    await db.execute(delete(Block).where(Block.id == block.id))
    await db.commit()
    return MessageResponse(message="Block deleted")
