import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from slipshare.core.errors import ReceiptAccessDenied, ReceiptNotFound
from slipshare.models.receipt import Receipt, ReceiptItem, UserType
from slipshare.models.selection import UserSelection
from slipshare.models.user import User
from slipshare.schemas.receipt import ReceiptCreate
from slipshare.services.selection_service import get_selection

logger = logging.getLogger(__name__)


@dataclass
class ReceiptAccess:
    receipt: Receipt
    user_selection: UserSelection | None
    is_creator: bool
    is_payer: bool


def derive_totals(
    items: list[dict],
    tax_percent: Decimal,
    service_percent: Decimal,
    rounding: Decimal,
    subtotal: Decimal | None = None,
    total: Decimal | None = None,
) -> tuple[Decimal, Decimal]:
    """
    Fill in a receipt's subtotal and total when the caller did not supply them.

    subtotal = sum(qty * unit_price); total = subtotal plus tax and service
    percentages of it plus rounding. Supplied values are kept as-is.
    """
    if subtotal is None:
        subtotal = sum((Decimal(item["qty"]) * Decimal(str(item["unit_price"])) for item in items), Decimal("0"))
    if total is None:
        total = (
            subtotal
            + subtotal * Decimal(tax_percent) / 100
            + subtotal * Decimal(service_percent) / 100
            + rounding
        )
    return subtotal, total


async def create_receipt(db: AsyncSession, user: User, data: ReceiptCreate) -> Receipt:
    """Insert a receipt and its items in one transaction. Items are numbered 1..n in order."""
    items = [item.model_dump() for item in data.items]
    rounding = data.rounding if data.rounding is not None else Decimal("0")
    subtotal, total = derive_totals(
        items, data.tax_percent, data.service_percent, rounding, data.subtotal, data.total
    )

    receipt = Receipt(
        user_id=user.id,
        merchant_name=data.merchant_name,
        merchant_name_en=data.merchant_name_en,
        original_language=data.original_language,
        currency=data.currency,
        tax_percent=data.tax_percent,
        service_percent=data.service_percent,
        rounding=rounding,
        subtotal=subtotal,
        total=total,
        raw_json=data.raw_json,
        parser_version=data.parser_version,
        issued_at=data.issued_at or datetime.now(timezone.utc),
        storage_key=data.storage_key,
        user_type=data.user_type or UserType.payer,
    )
    try:
        db.add(receipt)
        await db.flush()

        for position, item in enumerate(items, start=1):
            db.add(ReceiptItem(
                receipt_id=receipt.id,
                position=position,
                name=item["name"],
                name_en=item.get("name_en"),
                qty=item["qty"],
                unit_price=item["unit_price"],
            ))

        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception(f"Failed to create receipt for user {user.id}")
        raise

    logger.info(f"Created receipt {receipt.id} with {len(items)} items for user {user.id}")
    return receipt


async def get_receipt(db: AsyncSession, receipt_id: uuid.UUID) -> Receipt | None:
    result = await db.execute(
        select(Receipt).options(selectinload(Receipt.items)).where(Receipt.id == receipt_id)
    )
    return result.scalar_one_or_none()


async def list_receipts(
    db: AsyncSession, user_id: uuid.UUID, limit: int = 10, offset: int = 0
) -> tuple[list[Receipt], int]:
    """The user's own receipts, newest first, plus the total count for pagination."""
    result = await db.execute(
        select(Receipt)
        .options(selectinload(Receipt.items))
        .where(Receipt.user_id == user_id)
        .order_by(Receipt.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    receipts = list(result.scalars().all())

    count_result = await db.execute(
        select(func.count()).select_from(Receipt).where(Receipt.user_id == user_id)
    )
    return receipts, count_result.scalar_one()


async def get_receipt_for_user(db: AsyncSession, receipt_id: uuid.UUID, user_id: uuid.UUID) -> ReceiptAccess:
    """
    Load a receipt for display to ``user_id``.

    The creator can always read it; anyone else needs a saved selection.
    Raises ReceiptNotFound / ReceiptAccessDenied.
    """
    receipt = await get_receipt(db, receipt_id)
    if not receipt:
        raise ReceiptNotFound()

    is_creator = receipt.user_id == user_id
    selection = await get_selection(db, receipt_id, user_id)
    if not is_creator and selection is None:
        raise ReceiptAccessDenied()

    return ReceiptAccess(
        receipt=receipt,
        user_selection=selection,
        is_creator=is_creator,
        is_payer=is_creator and receipt.user_type == UserType.payer,
    )
