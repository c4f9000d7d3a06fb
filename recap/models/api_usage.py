"""Append-only ledger of admitted rate-limited requests."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base


class ApiUsageModel(Base):
    """A single admitted request for a ``(user_id, endpoint)`` partition."""

    __tablename__ = "api_usage"
    __table_args__ = (
        Index("ix_api_usage_user_endpoint_ts", "user_id", "endpoint", "timestamp"),
        Index("ix_api_usage_ts", "timestamp"),
    )

    # SQLite only autoincrements INTEGER primary keys.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    endpoint: Mapped[str] = mapped_column(String(128), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
