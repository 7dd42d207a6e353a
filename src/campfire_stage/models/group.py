"""SQLAlchemy model for ephemeral chat groups."""

from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campfire_stage.db.session import Base
from campfire_stage.db.time import now_millis

GROUP_ID_LENGTH = 20


class Group(Base):
    """Chat group that may carry a self-destruct rule.

    The rule is flattened into three nullable columns; ``None`` in any of
    them means "no limit" for that threshold.
    """

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(GROUP_ID_LENGTH), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_by: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    # Set semantics; order carries no meaning.
    member_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=now_millis)
    last_activity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=now_millis)
    # Maintained by the message-send path only.
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    max_messages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    inactivity_timeout_minutes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    # Set on destruction, cleared once every message has been deleted.
    purge_pending: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
