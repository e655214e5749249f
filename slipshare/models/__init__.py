from slipshare.models.user import User
from slipshare.models.receipt import Receipt, ReceiptItem, UserType
from slipshare.models.selection import UserSelection

__all__ = [
    "User",
    "Receipt", "ReceiptItem", "UserType",
    "UserSelection",
]
