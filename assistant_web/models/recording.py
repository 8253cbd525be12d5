"""Recorded turn ORM model — one exchange of a saved conversation transcript."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from assistant_web.database import Base


class RecordedTurn(Base):
    __tablename__ = "recorded_turns"
    __table_args__ = (UniqueConstraint("owner", "conversation_id", "turn_index"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(String(128), index=True)  # user id
    conversation_id: Mapped[str] = mapped_column(String(128))
    turn_index: Mapped[int] = mapped_column(Integer)
    user: Mapped[str] = mapped_column(Text, default="")
    assistant: Mapped[str] = mapped_column(Text, default="")  # newline-joined replies
    vote: Mapped[str | None] = mapped_column(String(8), nullable=True)  # up|down
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
