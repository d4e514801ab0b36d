from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey

from noken.db.session import Base
from noken.utils.dates import utcnow


class NotificationType(str, Enum):
    NEW_OFFRE = "NEW_OFFRE"
    NEW_MESSAGE = "NEW_MESSAGE"
    NEW_RETOUR = "NEW_RETOUR"
    NEW_COMMENTAIRE = "NEW_COMMENTAIRE"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
