# src/campfire_stage/models/message.py
"""Models describing chat messages posted to groups."""

from sqlalchemy import BigInteger, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campfire_stage.db.session import Base
from campfire_stage.db.time import now_millis


class Message(Base):
    """Message posted to a group.

    ``group_id`` is a plain indexed column rather than a foreign key: the
    link is kept by convention and cleaned up by group destruction.
    """

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    group_id: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    sender_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=now_millis)

    is_edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
