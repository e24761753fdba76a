"""
Message ORM model.

Represents one persisted chat message belonging to a session.

Dependencies: sqlalchemy, menechat.boundary.db.base
System role: Message persistence for conversation replay
"""

from sqlalchemy import Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from menechat.boundary.db.base import Base, IntegerIDMixin, TimestampMixin
from menechat.models.conversation import Message, Sender


class MessageModel(Base, IntegerIDMixin, TimestampMixin):
    """
    Message ORM model.

    Attributes:
        id: Integer primary key (insertion ordered)
        session_id: Owning session (ON DELETE CASCADE)
        sender: user or bot
        text: Message content
        created_at: Sort key within the session (ascending)
    """

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_session_created", "session_id", "created_at"),)

    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        doc="Owning session",
    )

    sender: Mapped[Sender] = mapped_column(
        Enum(Sender, name="message_sender", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    session = relationship("SessionModel", back_populates="messages")

    def to_domain(self) -> Message:
        return Message(
            id=str(self.id),
            session_id=str(self.session_id),
            sender=self.sender,
            text=self.text,
            created_at=self.created_at,
        )
