import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from slipshare.models.receipt import Receipt
from slipshare.models.selection import UserSelection
from slipshare.utils.allocation import Allocation, receipt_allocation

logger = logging.getLogger(__name__)


async def get_selection(db: AsyncSession, receipt_id: uuid.UUID, user_id: uuid.UUID) -> UserSelection | None:
    result = await db.execute(
        select(UserSelection).where(
            UserSelection.receipt_id == receipt_id,
            UserSelection.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


def preview_selection(receipt: Receipt, selected_items: list[str], item_shares: dict[str, int]) -> Allocation:
    """What the user would owe for this selection, without saving it."""
    return receipt_allocation(receipt, selected_items, item_shares)


async def save_selection(
    db: AsyncSession,
    receipt: Receipt,
    user_id: uuid.UUID,
    selected_items: list[str],
    item_shares: dict[str, int],
) -> UserSelection:
    """
    Create or replace the user's selection for a receipt.

    The allocation is computed here and cached on the row. A single
    INSERT ... ON CONFLICT DO UPDATE keyed on (user_id, receipt_id) keeps one
    row per pair; concurrent saves resolve as last write wins.
    """
    selected_items = list(dict.fromkeys(selected_items))
    allocation = receipt_allocation(receipt, selected_items, item_shares)
    if allocation.proportion > 1:
        logger.warning(
            f"Selection by {user_id} on receipt {receipt.id} exceeds receipt subtotal "
            f"(proportion={allocation.proportion:.4f})"
        )

    now = datetime.now(timezone.utc)
    values = {
        "selected_items": selected_items,
        "item_shares": dict(item_shares),
        **allocation.to_selection_fields(),
        "updated_at": now,
    }
    stmt = insert(UserSelection).values(
        id=uuid.uuid4(),
        user_id=user_id,
        receipt_id=receipt.id,
        created_at=now,
        **values,
    )
    stmt = stmt.on_conflict_do_update(
        constraint="uq_user_selections_user_receipt",
        set_=values,
    ).returning(UserSelection)

    result = await db.execute(stmt, execution_options={"populate_existing": True})
    selection = result.scalar_one()
    await db.commit()

    logger.info(
        f"Saved selection for user {user_id} on receipt {receipt.id}: "
        f"{len(selected_items)} items, total={allocation.final_total:.2f}"
    )
    return selection
