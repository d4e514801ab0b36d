from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from noken.db.session import Base
from noken.utils.dates import utcnow


class Retour(Base):
    """Retour d'expérience / candidature d'un utilisateur sur une offre."""

    __tablename__ = "retours"

    id = Column(Integer, primary_key=True, index=True)
    contenu = Column(Text, nullable=False)
    date_publication = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    offre_id = Column(Integer, ForeignKey("offres.id", ondelete="CASCADE"), nullable=False, index=True)
    auteur_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    auteur = relationship("User", lazy="selectin")
    offre = relationship("Offre", lazy="selectin")
    reponses = relationship(
        "ReponseRetour",
        lazy="selectin",
        passive_deletes=True,
        order_by="ReponseRetour.date_creation",
    )

    @property
    def statut(self) -> str:
        return "Répondu" if self.reponses else "En attente"


class ReponseRetour(Base):
    __tablename__ = "reponses_retours"

    id = Column(Integer, primary_key=True, index=True)
    contenu = Column(Text, nullable=False)
    date_creation = Column(DateTime, default=utcnow, nullable=False)
    retour_id = Column(Integer, ForeignKey("retours.id", ondelete="CASCADE"), nullable=False, index=True)
    auteur_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    auteur = relationship("User", lazy="selectin")
