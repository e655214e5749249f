import base64
import binascii
import json
import logging

from litellm import acompletion
from pydantic import ValidationError

from slipshare.core.config import settings
from slipshare.core.errors import NotAReceiptError, ParsingError
from slipshare.schemas.parsing import ParsedReceipt

logger = logging.getLogger(__name__)

PARSER_VERSION = "llm-json-v1"

EXTRACTION_PROMPT = """You are a bill-parsing assistant. Analyze this image and extract the receipt into this exact JSON structure:

{
  "is_receipt": true,
  "merchant_name": "name as printed",
  "merchant_name_en": "English name, or null if already English",
  "original_language": "ISO 639-1 code of the receipt text, e.g. th, en",
  "currency": "3-letter code e.g. THB, USD",
  "items": [
    {
      "name": "item name as printed",
      "name_en": "English name, or null",
      "qty": 1,
      "unit_price": 0.00
    }
  ],
  "tax_percent": 0.0,
  "service_percent": 0.0,
  "rounding": 0.00,
  "subtotal": 0.00,
  "total": 0.00
}

Rules:
- Return ONLY valid JSON, no markdown or explanation.
- If the image is not a receipt or bill, return {"is_receipt": false, "items": []}.
- qty is a positive integer. unit_price is the price of ONE unit.
- tax_percent and service_percent are percentages of the subtotal (e.g. 7 for 7% VAT, 10 for 10% service charge), 0 if absent.
- Do not include tax or service charge as items.
- rounding is the signed rounding adjustment printed on the receipt, 0 if absent.
- subtotal is the sum of items before tax and service; total is the final amount paid.
"""


def decode_image(image_base64: str) -> bytes:
    """Decode a base64 image, accepting an optional data URL prefix."""
    if image_base64.startswith("data:") and "," in image_base64:
        image_base64 = image_base64.split(",", 1)[1]
    try:
        return base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("image_base64 is not valid base64") from e


def _strip_code_fences(raw_text: str) -> str:
    if "```json" in raw_text:
        return raw_text.split("```json")[1].split("```")[0].strip()
    if "```" in raw_text:
        return raw_text.split("```")[1].split("```")[0].strip()
    return raw_text.strip()


def decode_model_output(raw_text: str) -> ParsedReceipt:
    """
    Turn the model's text answer into a ParsedReceipt.

    Raises ParsingError for output that is not the expected JSON and
    NotAReceiptError when the model says the image is not a receipt or
    finds no items.
    """
    try:
        data = json.loads(_strip_code_fences(raw_text))
    except json.JSONDecodeError as e:
        raise ParsingError("Parser returned invalid JSON") from e
    if not isinstance(data, dict):
        raise ParsingError("Parser returned unexpected JSON")

    try:
        parsed = ParsedReceipt.model_validate(data)
    except ValidationError as e:
        raise ParsingError("Parser returned an unexpected receipt structure") from e

    if not parsed.is_receipt or not parsed.items:
        raise NotAReceiptError()

    if parsed.currency:
        parsed.currency = parsed.currency.upper()
    parsed.parser_version = PARSER_VERSION
    return parsed


async def parse_receipt_image(image_bytes: bytes, mime_type: str = "image/jpeg") -> ParsedReceipt:
    """Send a receipt image to the configured vision model and return the structured receipt."""
    data_url = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode()}"
    logger.info(f"Parsing receipt image ({len(image_bytes)} bytes) with {settings.llm_model_name}")

    try:
        response = await acompletion(
            model=settings.llm_model_name,
            api_key=settings.llm_api_key,
            timeout=settings.llm_timeout_seconds,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                }
            ],
        )
    except Exception as e:
        logger.exception("Vision model call failed")
        raise ParsingError() from e

    raw_text = response.choices[0].message.content or ""
    return decode_model_output(raw_text)
