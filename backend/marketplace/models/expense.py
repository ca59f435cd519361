"""Owner-recorded operating expenses for vehicles and attractions."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.db.base import Base
from marketplace.models.mixins import TimestampMixin


class LedgerDomain(str, enum.Enum):
    """Product lines that carry their own finance ledger."""

    VEHICLES = "vehicles"
    ATTRACTIONS = "attractions"


class Expense(TimestampMixin, Base):
    """A single expense booked against one owned resource."""

    __tablename__ = "expenses"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    domain: Mapped[LedgerDomain] = mapped_column(Enum(LedgerDomain), nullable=False)
    resource_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    incurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(64), default="general", nullable=False)
    note: Mapped[str] = mapped_column(String(1024), default="", nullable=False)
