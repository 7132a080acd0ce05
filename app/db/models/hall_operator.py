from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class HallOperator(Base):
    __tablename__ = "hall_operators"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    hall_name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    head_name: Mapped[str] = mapped_column(String(120), nullable=False)
    head_email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
