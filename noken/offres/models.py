from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, Float, ForeignKey
from sqlalchemy.orm import relationship

from noken.db.session import Base
from noken.utils.dates import utcnow


class TypeOffre(str, Enum):
    EMPLOI = "EMPLOI"
    FORMATION = "FORMATION"
    BOURSE = "BOURSE"
    VOLONTARIAT = "VOLONTARIAT"


class TypeEmploi(str, Enum):
    CDI = "CDI"
    CDD = "CDD"
    STAGE = "STAGE"
    ALTERNANCE = "ALTERNANCE"
    FREELANCE = "FREELANCE"
    INTERIM = "INTERIM"
    SAISONNIER = "SAISONNIER"
    TEMPS_PARTIEL = "TEMPS_PARTIEL"
    TEMPS_PLEIN = "TEMPS_PLEIN"


class Secteur(str, Enum):
    INFORMATIQUE = "INFORMATIQUE"
    FINANCE = "FINANCE"
    SANTE = "SANTE"
    EDUCATION = "EDUCATION"
    COMMERCE = "COMMERCE"
    INDUSTRIE = "INDUSTRIE"
    AGRICULTURE = "AGRICULTURE"
    TOURISME = "TOURISME"
    TRANSPORT = "TRANSPORT"
    COMMUNICATION = "COMMUNICATION"
    ADMINISTRATION = "ADMINISTRATION"
    ARTISANAT = "ARTISANAT"
    CONSTRUCTION = "CONSTRUCTION"
    ENERGIE = "ENERGIE"
    ENVIRONNEMENT = "ENVIRONNEMENT"
    JURIDIQUE = "JURIDIQUE"
    MARKETING = "MARKETING"
    RESSOURCES_HUMAINES = "RESSOURCES_HUMAINES"
    RECHERCHE = "RECHERCHE"
    AUTRE = "AUTRE"


class NiveauExperience(str, Enum):
    DEBUTANT = "DEBUTANT"
    JUNIOR = "JUNIOR"
    CONFIRME = "CONFIRME"
    SENIOR = "SENIOR"
    EXPERT = "EXPERT"


# Champs propres à chaque type d'offre, vidés pour les autres types
CATEGORY_FIELDS = {
    TypeOffre.EMPLOI: ("salaire_min", "salaire_max", "devise"),
    TypeOffre.FORMATION: ("organisme", "duree_formation", "certification"),
    TypeOffre.BOURSE: ("pays_bourse", "niveau_etude", "montant_bourse", "est_remboursable"),
    TypeOffre.VOLONTARIAT: ("type_volontariat", "duree_volontariat", "hebergement", "indemnite"),
}


class Offre(Base):
    __tablename__ = "offres"

    id = Column(Integer, primary_key=True, index=True)
    titre = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    url = Column(String(500), nullable=True)
    date_limite = Column(DateTime, nullable=True)
    type_offre = Column(String(20), nullable=False, index=True)
    type_emploi = Column(String(20), nullable=True, index=True)
    secteur = Column(String(30), nullable=True, index=True)
    niveau_experience = Column(String(20), nullable=True, index=True)
    localisation = Column(String(200), nullable=True)
    entreprise = Column(String(200), nullable=True)
    competences_requises = Column(Text, nullable=True)

    # EMPLOI
    salaire_min = Column(Float, nullable=True)
    salaire_max = Column(Float, nullable=True)
    devise = Column(String(10), nullable=True)

    # FORMATION
    organisme = Column(String(200), nullable=True)
    duree_formation = Column(Integer, nullable=True)
    certification = Column(String(200), nullable=True)

    # BOURSE
    pays_bourse = Column(String(100), nullable=True)
    niveau_etude = Column(String(100), nullable=True)
    montant_bourse = Column(Float, nullable=True)
    est_remboursable = Column(Boolean, nullable=True)

    # VOLONTARIAT
    type_volontariat = Column(String(100), nullable=True)
    duree_volontariat = Column(Integer, nullable=True)
    hebergement = Column(Boolean, nullable=True)
    indemnite = Column(Float, nullable=True)

    # Document joint principal
    document_url = Column(String(500), nullable=True)
    document_name = Column(String(255), nullable=True)
    document_type = Column(String(100), nullable=True)

    view_count = Column(Integer, default=0, nullable=False)
    date_publication = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    auteur_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    auteur = relationship("User", lazy="selectin")
    tag_links = relationship(
        "OffreTag",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OffreTag.id",
    )
    fichiers = relationship(
        "OffreFichier",
        lazy="selectin",
        passive_deletes=True,
        order_by="OffreFichier.created_at.desc()",
    )
    commentaires = relationship(
        "Commentaire",
        lazy="raise",
        passive_deletes=True,
        order_by="Commentaire.date_publication.desc()",
    )

    @property
    def tags(self):
        return [link.label for link in self.tag_links]

    def set_tags(self, labels):
        seen = []
        for label in labels or []:
            label = label.strip()
            if label and label not in seen:
                seen.append(label)
        self.tag_links = [OffreTag(label=label) for label in seen]

    def __repr__(self):
        return f"<Offre(id={self.id}, titre='{self.titre}', type='{self.type_offre}')>"


class OffreTag(Base):
    __tablename__ = "offre_tags"

    id = Column(Integer, primary_key=True)
    offre_id = Column(Integer, ForeignKey("offres.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(100), nullable=False, index=True)


class OffreFichier(Base):
    __tablename__ = "offre_fichiers"

    id = Column(Integer, primary_key=True, index=True)
    nom = Column(String(255), nullable=False)
    url = Column(String(500), nullable=False)
    type = Column(String(100), nullable=False)
    taille = Column(Integer, nullable=False)
    offre_id = Column(Integer, ForeignKey("offres.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
