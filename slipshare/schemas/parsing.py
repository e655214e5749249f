from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class ParseRequest(BaseModel):
    image_base64: str = Field(min_length=1)
    mime_type: str = "image/jpeg"


class ParsedItem(BaseModel):
    name: str
    name_en: str | None = None
    qty: int = Field(default=1, gt=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class ParsedReceipt(BaseModel):
    """Structured receipt as returned by the vision model, ready to prefill a ReceiptCreate."""
    is_receipt: bool = True
    merchant_name: str | None = None
    merchant_name_en: str | None = None
    original_language: str | None = None
    currency: str | None = None
    items: list[ParsedItem] = []
    tax_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    service_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    rounding: Decimal = Decimal("0")
    subtotal: Decimal | None = None
    total: Decimal | None = None
    parser_version: str | None = None

    # Models write null for charges that are not printed.
    @field_validator("tax_percent", "service_percent", "rounding", mode="before")
    @classmethod
    def _null_is_zero(cls, v):
        return 0 if v is None else v
