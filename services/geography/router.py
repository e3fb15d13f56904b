"""
services/geography/router.py
Admin maintenance of the country → state → city reference tree.
Deleting a node cascades to everything below it.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from services.geography.tree import LEVELS, GeoLevel
from shared.middleware.auth import require_admin
from shared.models.models import User
from shared.schemas.schemas import (
    GeoCreateRequest,
    IdsRequest,
    MessageResponse,
    TranslationCreateRequest,
    TranslationResponse,
    TranslationUpdateRequest,
)
from shared.utils.errors import field_error
from shared.utils.pagination import paginate, page_payload
from shared.utils.translations import (
    add_translation,
    delete_translations,
    display_name,
    translation_payload,
    update_translation,
)

router = APIRouter(prefix="/geography", tags=["Geography"])

LevelName = Literal["countries", "states", "cities"]


# ── Helpers ───────────────────────────────────────────────────

async def _get_node_or_404(db: AsyncSession, level: GeoLevel, node_id: int):
    node = await db.get(level.model, node_id)
    if not node:
        raise HTTPException(status_code=404, detail=f"{level.model.__name__} not found")
    return node


async def _check_parent(db: AsyncSession, level: GeoLevel, parent_id: Optional[int]) -> None:
    if parent_id is None:
        raise field_error(f"{level.parent_model.__name__} is required", "parent_id")
    if not await db.get(level.parent_model, parent_id):
        raise field_error(
            f"{level.parent_model.__name__} not found", "parent_id", status.HTTP_404_NOT_FOUND
        )


async def _rows(db: AsyncSession, level: GeoLevel, nodes: list, locale: Optional[str] = None) -> list[dict]:
    """Display rows; states and cities also carry their parent's name."""
    parents = {}
    if level.has_parent and nodes:
        parent_ids = {getattr(n, level.parent_attr) for n in nodes}
        result = await db.execute(
            select(level.parent_model).where(level.parent_model.id.in_(parent_ids))
        )
        parents = {p.id: p for p in result.scalars()}

    rows = []
    for node in nodes:
        row = {"id": node.id, "name": display_name(node.translations, locale)}
        if level.has_parent:
            parent = parents.get(getattr(node, level.parent_attr))
            row["parent_id"] = getattr(node, level.parent_attr)
            row["parent_name"] = display_name(parent.translations, locale) if parent else None
        rows.append(row)
    return rows


async def _node_payload(db: AsyncSession, level: GeoLevel, node) -> dict:
    await db.commit()
    await db.refresh(node, ["translations"])
    row = (await _rows(db, level, [node]))[0]
    row["translations"] = translation_payload(node.translations)
    return row


# ── Nodes ─────────────────────────────────────────────────────

@router.post("/{level_name}", status_code=201)
async def create_node(
    level_name: LevelName,
    data: GeoCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a country, state or city together with its first translation."""
    level = LEVELS[level_name]
    fields = {}
    if level.has_parent:
        await _check_parent(db, level, data.parent_id)
        fields[level.parent_attr] = data.parent_id

    node = level.model(**fields, translations=[level.translation(name=data.name, locale=data.locale)])
    db.add(node)
    return await _node_payload(db, level, node)


@router.get("/{level_name}")
async def list_nodes(
    level_name: LevelName,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.PAGE_SIZE_DEFAULT, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    level = LEVELS[level_name]
    nodes, total = await paginate(db, select(level.model).order_by(level.model.id), page, page_size)
    return page_payload(await _rows(db, level, nodes), total, page, page_size)


@router.get("/{level_name}/all")
async def list_all_nodes(
    level_name: LevelName,
    parent_id: Optional[int] = Query(None, description="Country of states, or state of cities"),
    locale: Optional[str] = Query(None, max_length=10),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Unpaginated list for pickers."""
    level = LEVELS[level_name]
    query = select(level.model).order_by(level.model.id)
    if parent_id is not None and level.has_parent:
        query = query.where(getattr(level.model, level.parent_attr) == parent_id)
    result = await db.execute(query)
    return await _rows(db, level, list(result.scalars()), locale)


@router.delete("/{level_name}", response_model=MessageResponse)
async def delete_nodes(
    level_name: LevelName,
    data: IdsRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    level = LEVELS[level_name]
    result = await db.execute(delete(level.model).where(level.model.id.in_(data.ids)))
    await db.commit()
    return MessageResponse(message=f"Deleted {result.rowcount} {level_name}")


@router.delete("/{level_name}/{node_id}", response_model=MessageResponse)
async def delete_node(
    level_name: LevelName,
    node_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    level = LEVELS[level_name]
    node = await _get_node_or_404(db, level, node_id)
    await db.execute(delete(level.model).where(level.model.id == node.id))
    await db.commit()
    return MessageResponse(message=f"{level.model.__name__} deleted")


# ── Translations ──────────────────────────────────────────────

@router.get("/{level_name}/{node_id}/translations", response_model=list[TranslationResponse])
async def get_node_translations(
    level_name: LevelName,
    node_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    node = await _get_node_or_404(db, LEVELS[level_name], node_id)
    return translation_payload(node.translations)


@router.post("/{level_name}/{node_id}/translations", status_code=201)
async def add_node_translation(
    level_name: LevelName,
    node_id: int,
    data: TranslationCreateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    level = LEVELS[level_name]
    node = await _get_node_or_404(db, level, node_id)
    await add_translation(db, level.translation, level.fk, node.id, data.name, data.locale)
    return await _node_payload(db, level, node)


@router.patch("/{level_name}/{node_id}/translations/{translation_id}")
async def edit_node_translation(
    level_name: LevelName,
    node_id: int,
    translation_id: int,
    data: TranslationUpdateRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Rename a translation; a parent_id also moves the node under a new parent."""
    level = LEVELS[level_name]
    node = await _get_node_or_404(db, level, node_id)
    await update_translation(db, level.translation, level.fk, node.id, translation_id, data.name, data.locale)

    if data.parent_id is not None and level.has_parent:
        await _check_parent(db, level, data.parent_id)
        setattr(node, level.parent_attr, data.parent_id)

    return await _node_payload(db, level, node)


@router.delete("/{level_name}/{node_id}/translations")
async def delete_node_translations(
    level_name: LevelName,
    node_id: int,
    data: IdsRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    level = LEVELS[level_name]
    node = await _get_node_or_404(db, level, node_id)
    await delete_translations(db, level.translation, level.fk, node.id, data.ids)
    return await _node_payload(db, level, node)
