"""
Session ORM model.

Represents one named conversation. Messages are scoped to sessions and
removed together with them.

Dependencies: sqlalchemy, menechat.boundary.db.base
System role: Session persistence for conversation management
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from menechat.boundary.db.base import Base, IntegerIDMixin, TimestampMixin
from menechat.models.conversation import Session


class SessionModel(Base, IntegerIDMixin, TimestampMixin):
    """
    Session ORM model.

    Attributes:
        id: Integer primary key (auto-generated, insertion ordered)
        title: Display title
        title_is_placeholder: True until the title is derived from the first exchange
        messages: MessageModel rows of this session (cascading delete)
        created_at: Session creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    Relationships:
        messages: One-to-many with MessageModel (cascade delete on session removal)
    """

    __tablename__ = "sessions"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Display title",
    )

    title_is_placeholder: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="Title was generated, not derived from the conversation",
    )

    # Relationships
    messages = relationship(
        "MessageModel",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_domain(self) -> Session:
        return Session(
            id=str(self.id),
            title=self.title,
            title_is_placeholder=self.title_is_placeholder,
            created_at=self.created_at,
        )
