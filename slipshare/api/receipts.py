import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from slipshare.core.auth import get_current_user
from slipshare.core.database import get_db
from slipshare.core.errors import INVALID_REQUEST_DATA, error_body
from slipshare.models.user import User
from slipshare.schemas.parsing import ParseRequest, ParsedReceipt
from slipshare.schemas.receipt import (
    ReceiptCreate, CreateReceiptResponse, ReceiptDetailResponse, ReceiptResponse,
    ReceiptListResponse, ReceiptListItem, Pagination,
)
from slipshare.schemas.selection import SelectionResponse
from slipshare.services.parsing_service import decode_image, parse_receipt_image
from slipshare.services.receipt_service import create_receipt, get_receipt_for_user, list_receipts

router = APIRouter(tags=["receipts"])


@router.post("/api/receipts/parse", response_model=ParsedReceipt)
async def parse_receipt(
    body: ParseRequest,
    user: User = Depends(get_current_user),
):
    try:
        image_bytes = decode_image(body.image_base64)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=error_body(INVALID_REQUEST_DATA, str(e)))
    return await parse_receipt_image(image_bytes, body.mime_type)


@router.post("/api/receipts", response_model=CreateReceiptResponse, status_code=201)
async def create(
    body: ReceiptCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    receipt = await create_receipt(db, user, body)
    return CreateReceiptResponse(receipt_id=receipt.id)


@router.get("/api/receipts", response_model=ReceiptListResponse)
async def list_my_receipts(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    receipts, total = await list_receipts(db, user.id, limit=limit, offset=offset)
    return ReceiptListResponse(
        receipts=[ReceiptListItem.model_validate(r) for r in receipts],
        pagination=Pagination(total=total, limit=limit, offset=offset, has_more=offset + limit < total),
    )


@router.get("/api/receipts/{receipt_id}", response_model=ReceiptDetailResponse)
async def get_receipt_detail(
    receipt_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    access = await get_receipt_for_user(db, receipt_id, user.id)
    return ReceiptDetailResponse(
        receipt=ReceiptResponse.model_validate(access.receipt),
        user_selection=SelectionResponse.model_validate(access.user_selection) if access.user_selection else None,
        is_creator=access.is_creator,
        is_payer=access.is_payer,
    )
