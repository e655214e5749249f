"""Client-facing error codes and the exceptions that carry them.

Every error the API raises itself has the shape ``{"code": ..., "message": ...}``;
validation failures add ``details`` with one entry per offending field.
"""
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


UNAUTHORIZED = "UNAUTHORIZED"
INVALID_REQUEST_DATA = "INVALID_REQUEST_DATA"
RECEIPT_NOT_FOUND = "RECEIPT_NOT_FOUND"
RECEIPT_ACCESS_DENIED = "RECEIPT_ACCESS_DENIED"
SELECTION_NOT_FOUND = "SELECTION_NOT_FOUND"
NOT_A_RECEIPT = "NOT_A_RECEIPT"
PARSING_FAILED = "PARSING_FAILED"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

ERROR_MESSAGES = {
    UNAUTHORIZED: "Authentication required",
    INVALID_REQUEST_DATA: "Invalid request data",
    RECEIPT_NOT_FOUND: "Receipt not found",
    RECEIPT_ACCESS_DENIED: "You do not have access to this receipt",
    SELECTION_NOT_FOUND: "No selection saved for this receipt",
    NOT_A_RECEIPT: "The image does not look like a receipt",
    PARSING_FAILED: "Could not parse the receipt image",
    INTERNAL_SERVER_ERROR: "Internal server error",
}


class SlipShareError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None):
        self.message = message or ERROR_MESSAGES[self.code]
        super().__init__(self.message)


class ReceiptNotFound(SlipShareError):
    status_code = status.HTTP_404_NOT_FOUND
    code = RECEIPT_NOT_FOUND


class ReceiptAccessDenied(SlipShareError):
    status_code = status.HTTP_403_FORBIDDEN
    code = RECEIPT_ACCESS_DENIED


class SelectionNotFound(SlipShareError):
    status_code = status.HTTP_404_NOT_FOUND
    code = SELECTION_NOT_FOUND


class NotAReceiptError(SlipShareError):
    status_code = 422
    code = NOT_A_RECEIPT


class ParsingError(SlipShareError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = PARSING_FAILED


def error_body(code: str, message: str | None = None, **extra) -> dict:
    return {"code": code, "message": message or ERROR_MESSAGES[code], **extra}


async def slipshare_error_handler(request: Request, exc: SlipShareError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(INVALID_REQUEST_DATA, details=details),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPExceptions raised with an error_body() detail without the extra nesting."""
    if isinstance(exc.detail, dict) and "code" in exc.detail:
        content = exc.detail
    else:
        content = {"detail": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))
