import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from slipshare.core.auth import get_current_user
from slipshare.core.database import get_db
from slipshare.core.errors import ReceiptNotFound, SelectionNotFound
from slipshare.models.receipt import Receipt
from slipshare.models.user import User
from slipshare.schemas.selection import AllocationResponse, SelectionRequest, SelectionResponse
from slipshare.services.receipt_service import get_receipt
from slipshare.services.selection_service import get_selection, preview_selection, save_selection

router = APIRouter(prefix="/api/receipts/{receipt_id}/selections", tags=["selections"])


async def _require_receipt(db: AsyncSession, receipt_id: uuid.UUID) -> Receipt:
    receipt = await get_receipt(db, receipt_id)
    if not receipt:
        raise ReceiptNotFound()
    return receipt


@router.get("", response_model=SelectionResponse)
async def get_my_selection(
    receipt_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _require_receipt(db, receipt_id)
    selection = await get_selection(db, receipt_id, user.id)
    if not selection:
        raise SelectionNotFound()
    return selection


# POST and PUT are the same upsert; PUT is kept for clients that update explicitly.
@router.api_route("", methods=["POST", "PUT"], response_model=SelectionResponse)
async def save_my_selection(
    receipt_id: uuid.UUID,
    body: SelectionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    receipt = await _require_receipt(db, receipt_id)
    return await save_selection(db, receipt, user.id, body.selected_items, body.item_shares)


@router.post("/preview", response_model=AllocationResponse)
async def preview_my_selection(
    receipt_id: uuid.UUID,
    body: SelectionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Live total while the user is still picking items. Nothing is saved."""
    receipt = await _require_receipt(db, receipt_id)
    return preview_selection(receipt, body.selected_items, body.item_shares)
