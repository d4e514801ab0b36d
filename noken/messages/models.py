from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship

from noken.db.session import Base
from noken.utils.dates import utcnow


class Message(Base):
    """Message adressé à l'équipe d'administration."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sujet = Column(String(200), nullable=False)
    contenu = Column(Text, nullable=False)
    est_lu = Column(Boolean, default=False, nullable=False, index=True)
    date_envoi = Column(DateTime, default=utcnow, nullable=False, index=True)
    expediteur_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    expediteur = relationship("User", lazy="selectin")
    reponses = relationship(
        "ReponseMessage",
        lazy="selectin",
        passive_deletes=True,
        order_by="ReponseMessage.date_creation",
    )


class ReponseMessage(Base):
    __tablename__ = "reponses_messages"

    id = Column(Integer, primary_key=True, index=True)
    contenu = Column(Text, nullable=False)
    date_creation = Column(DateTime, default=utcnow, nullable=False)
    message_id = Column(Integer, ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True)
    auteur_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    auteur = relationship("User", lazy="selectin")
