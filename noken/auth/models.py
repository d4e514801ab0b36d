# noken/auth/models.py
from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, Date, ForeignKey
from sqlalchemy.orm import relationship

from noken.db.session import Base
from noken.utils.dates import utcnow


class Role(str, Enum):
    ADMIN = "ADMIN"
    MEMBRE = "MEMBRE"
    PARTENAIRE = "PARTENAIRE"


class StatutProfessionnel(str, Enum):
    NON_PRECISE = "NON_PRECISE"
    EN_RECHERCHE = "EN_RECHERCHE"
    EN_POSTE = "EN_POSTE"
    ETUDIANT = "ETUDIANT"
    FREELANCE = "FREELANCE"
    CHOMAGE = "CHOMAGE"
    RECONVERSION = "RECONVERSION"


class Sexe(str, Enum):
    HOMME = "HOMME"
    FEMME = "FEMME"
    AUTRE = "AUTRE"
    NON_PRECISE = "NON_PRECISE"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), nullable=True)
    password = Column(String(255), nullable=True)  # null pour les comptes Google
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    picture_url = Column(String(500), nullable=True)

    role = Column(String(20), default=Role.MEMBRE.value, nullable=False, index=True)
    statut_professionnel = Column(String(30), default=StatutProfessionnel.NON_PRECISE.value, nullable=False)

    # Localisation
    pays = Column(String(100), nullable=True)
    commune = Column(String(100), nullable=True)
    quartier = Column(String(100), nullable=True)

    # Données démographiques
    sexe = Column(String(20), default=Sexe.NON_PRECISE.value, nullable=False)
    date_naissance = Column(Date, nullable=True)
    adresse = Column(String(255), nullable=True)
    telephone = Column(String(50), nullable=True)
    handicap = Column(Boolean, default=False, nullable=False)
    type_handicap = Column(String(255), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    is_google_login = Column(Boolean, default=False, nullable=False)
    google_id = Column(String(255), unique=True, nullable=True)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    refresh_token = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    @property
    def full_name(self):
        """Nom complet, vide si non renseigné"""
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def display_name(self):
        """Nom d'affichage pour l'interface utilisateur"""
        return self.full_name or self.username or self.email

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


class EmailVerification(Base):
    __tablename__ = "email_verifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User")


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(128), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
