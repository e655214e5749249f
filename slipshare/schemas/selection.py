import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from slipshare.utils.allocation import MAX_SHARE_DIVISOR, MIN_SHARE_DIVISOR

ShareCount = Annotated[StrictInt, Field(ge=MIN_SHARE_DIVISOR, le=MAX_SHARE_DIVISOR)]


class SelectionRequest(BaseModel):
    """Body of a selection save or preview. Types are strict: "2" or 2.0 are rejected."""
    selected_items: list[StrictStr]
    item_shares: dict[StrictStr, ShareCount]


class SelectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    user_id: uuid.UUID
    receipt_id: uuid.UUID
    selected_items: list[str]
    item_shares: dict[str, int]
    calculated_total: float
    tax_amount: float
    service_amount: float
    rounding_amount: float
    created_at: datetime
    updated_at: datetime


class AllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    selected_subtotal: float
    proportion: float
    tax_amount: float
    service_amount: float
    rounding_amount: float
    final_total: float
