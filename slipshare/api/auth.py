import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slipshare.core.auth import get_current_user
from slipshare.core.database import get_db
from slipshare.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


class AuthCallbackRequest(BaseModel):
    id: uuid.UUID
    email: str
    display_name: str


def _user_payload(user: User) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "display_name": user.display_name,
    }


@router.post("/callback")
async def auth_callback(
    body: AuthCallbackRequest,
    db: AsyncSession = Depends(get_db),
):
    """Sync a Supabase user into the local users table after signup/login."""
    result = await db.execute(select(User).where(User.id == body.id))
    user = result.scalar_one_or_none()

    # Existing rows are left alone; the callback only creates.
    if not user:
        db.add(User(id=body.id, email=body.email, display_name=body.display_name))
        await db.commit()
    return {"status": "ok"}


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    return _user_payload(user)
