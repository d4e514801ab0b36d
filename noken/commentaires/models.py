from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from noken.db.session import Base
from noken.utils.dates import utcnow


class Commentaire(Base):
    __tablename__ = "commentaires"

    id = Column(Integer, primary_key=True, index=True)
    contenu = Column(Text, nullable=False)
    date_publication = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    offre_id = Column(Integer, ForeignKey("offres.id", ondelete="CASCADE"), nullable=False, index=True)
    auteur_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    auteur = relationship("User", lazy="selectin")

    def __repr__(self):
        return f"<Commentaire(id={self.id}, offre_id={self.offre_id}, auteur_id={self.auteur_id})>"
