import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slipshare.models.receipt import UserType
from slipshare.schemas.selection import SelectionResponse


class ReceiptItemCreate(BaseModel):
    name: str = Field(min_length=1)
    name_en: str | None = None
    qty: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)


class ReceiptCreate(BaseModel):
    merchant_name: str | None = None
    merchant_name_en: str | None = None
    original_language: str | None = None
    currency: str = Field(default="THB", min_length=3, max_length=3)
    tax_percent: Decimal = Field(ge=0, le=100)
    service_percent: Decimal = Field(ge=0, le=100)
    rounding: Decimal | None = None
    raw_json: Any | None = None
    parser_version: str | None = None
    issued_at: datetime | None = None
    storage_key: str | None = None
    user_type: UserType = UserType.payer
    items: list[ReceiptItemCreate]
    subtotal: Decimal | None = None
    total: Decimal | None = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return v.upper()


class CreateReceiptResponse(BaseModel):
    receipt_id: uuid.UUID


class ReceiptItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    receipt_id: uuid.UUID
    position: int
    name: str
    name_en: str | None = None
    qty: int
    unit_price: Decimal
    created_at: datetime
    updated_at: datetime


class ReceiptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    user_id: uuid.UUID
    merchant_name: str | None
    merchant_name_en: str | None = None
    original_language: str | None = None
    currency: str
    tax_percent: Decimal
    service_percent: Decimal
    rounding: Decimal
    subtotal: Decimal
    total: Decimal
    raw_json: Any | None = None
    parser_version: str | None = None
    issued_at: datetime | None = None
    storage_key: str | None = None
    user_type: UserType
    created_at: datetime
    updated_at: datetime
    items: list[ReceiptItemResponse] = []


class ReceiptDetailResponse(BaseModel):
    receipt: ReceiptResponse
    user_selection: SelectionResponse | None = None
    is_creator: bool
    is_payer: bool


class ReceiptListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    merchant_name: str | None
    currency: str
    subtotal: Decimal
    total: Decimal
    user_type: UserType
    created_at: datetime
    items: list[ReceiptItemResponse] = []


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class ReceiptListResponse(BaseModel):
    receipts: list[ReceiptListItem]
    pagination: Pagination
