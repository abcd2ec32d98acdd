from __future__ import annotations

import datetime as dt
from decimal import Decimal
from sqlalchemy import String, Integer, Date, DateTime, Numeric, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from .db import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[str] = mapped_column(String(16), default="Employee", nullable=False)  # Employee|Admin


class Bill(Base):
    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    vat: Mapped[str | None] = mapped_column(String(32), nullable=True)  # numeric text or ""
    pct: Mapped[int] = mapped_column(Integer, default=20, nullable=False)
    commentary: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)  # pending|accepted|refused
    comment_admin: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_bills_amount_nonneg"),
        CheckConstraint("status IN ('pending', 'accepted', 'refused')", name="ck_bills_status"),
    )

    def __repr__(self) -> str:
        return f"<Bill id={self.id} email={self.email} date={self.date} status={self.status}>"
