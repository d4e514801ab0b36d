from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship

from noken.db.session import Base
from noken.utils.dates import utcnow


class CV(Base):
    __tablename__ = "cvs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    titre_professionnel = Column(String(200), nullable=True)
    telephone = Column(String(50), nullable=True)
    adresse = Column(String(255), nullable=True)
    ville = Column(String(100), nullable=True)
    code_postal = Column(String(20), nullable=True)
    pays = Column(String(100), nullable=True)
    linkedin = Column(String(500), nullable=True)
    site_web = Column(String(500), nullable=True)
    github = Column(String(500), nullable=True)
    resume = Column(Text, nullable=True)

    competences = Column(JSON, default=list, nullable=False)
    langues = Column(JSON, default=list, nullable=False)
    certifications = Column(JSON, default=list, nullable=False)
    interets = Column(JSON, default=list, nullable=False)

    est_public = Column(Boolean, default=False, nullable=False, index=True)
    date_creation = Column(DateTime, default=utcnow, nullable=False)
    date_modification = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", lazy="selectin")
    experiences = relationship(
        "Experience",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Experience.date_debut.desc()",
    )
    formations = relationship(
        "Formation",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Formation.date_debut.desc()",
    )


class Experience(Base):
    __tablename__ = "experiences"

    id = Column(Integer, primary_key=True, index=True)
    cv_id = Column(Integer, ForeignKey("cvs.id", ondelete="CASCADE"), nullable=False, index=True)
    poste = Column(String(200), nullable=False)
    entreprise = Column(String(200), nullable=False)
    ville = Column(String(100), nullable=True)
    date_debut = Column(Date, nullable=False)
    date_fin = Column(Date, nullable=True)
    en_cours = Column(Boolean, default=False, nullable=False)
    description = Column(Text, nullable=True)


class Formation(Base):
    __tablename__ = "formations"

    id = Column(Integer, primary_key=True, index=True)
    cv_id = Column(Integer, ForeignKey("cvs.id", ondelete="CASCADE"), nullable=False, index=True)
    diplome = Column(String(200), nullable=False)
    etablissement = Column(String(200), nullable=False)
    ville = Column(String(100), nullable=True)
    date_debut = Column(Date, nullable=False)
    date_fin = Column(Date, nullable=True)
    en_cours = Column(Boolean, default=False, nullable=False)
    description = Column(Text, nullable=True)
