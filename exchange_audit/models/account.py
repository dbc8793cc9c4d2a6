# exchange_audit/models/account.py
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from exchange_audit.db.database import Base


class AdminAccount(Base):
    """Back-office operator account."""

    __tablename__ = "admins"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    work_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role_code: Mapped[str] = mapped_column(String(50), default="ADMIN")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class UserAccount(Base):
    """Exchange client account."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    role: Mapped[str] = mapped_column(String(50), default="USER")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
