from sqlalchemy import Column, Integer, DateTime, Boolean, Text, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from noken.db.session import Base
from noken.utils.dates import utcnow


class PrivateConversation(Base):
    """Conversation entre deux utilisateurs, stockée avec user1_id < user2_id."""

    __tablename__ = "private_conversations"
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_private_conversation_pair"),
        CheckConstraint("user1_id < user2_id", name="ck_private_conversation_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user1_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user2_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    user1 = relationship("User", foreign_keys=[user1_id], lazy="selectin")
    user2 = relationship("User", foreign_keys=[user2_id], lazy="selectin")

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_user(self, user_id: int):
        return self.user2 if self.user1_id == user_id else self.user1

    def other_user_id(self, user_id: int) -> int:
        return self.user2_id if self.user1_id == user_id else self.user1_id


class PrivateMessage(Base):
    __tablename__ = "private_messages"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    conversation_id = Column(
        Integer, ForeignKey("private_conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    sender = relationship("User", lazy="selectin")
