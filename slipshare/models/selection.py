import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Double, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from slipshare.core.database import Base


class UserSelection(Base):
    """One participant's claim on a receipt's items.

    The four amount columns cache the allocation computed when the selection
    was last saved. They are double precision so they hold the computed
    floats unchanged.
    """

    __tablename__ = "user_selections"
    __table_args__ = (UniqueConstraint("user_id", "receipt_id", name="uq_user_selections_user_receipt"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)
    receipt_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("receipts.id", ondelete="CASCADE"), index=True, nullable=False)
    selected_items: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    item_shares: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    calculated_total: Mapped[float] = mapped_column(Double, nullable=False, default=0.0)
    tax_amount: Mapped[float] = mapped_column(Double, nullable=False, default=0.0)
    service_amount: Mapped[float] = mapped_column(Double, nullable=False, default=0.0)
    rounding_amount: Mapped[float] = mapped_column(Double, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
