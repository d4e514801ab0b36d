from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from noken.auth.schemas import AuthorOut
from noken.offres.models import NiveauExperience, Secteur, TypeEmploi, TypeOffre
from noken.schemas import CamelModel, naive_utc


class OffreBase(CamelModel):
    titre: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    url: Optional[str] = None
    date_limite: Optional[datetime] = None
    type_offre: TypeOffre
    type_emploi: Optional[TypeEmploi] = None
    secteur: Optional[Secteur] = None
    niveau_experience: Optional[NiveauExperience] = None
    localisation: Optional[str] = Field(None, max_length=200)
    entreprise: Optional[str] = Field(None, max_length=200)
    tags: List[str] = []
    competences_requises: Optional[str] = None

    salaire_min: Optional[float] = Field(None, ge=0)
    salaire_max: Optional[float] = Field(None, ge=0)
    devise: Optional[str] = None

    organisme: Optional[str] = None
    duree_formation: Optional[int] = Field(None, ge=0)
    certification: Optional[str] = None

    pays_bourse: Optional[str] = None
    niveau_etude: Optional[str] = None
    montant_bourse: Optional[float] = Field(None, ge=0)
    est_remboursable: Optional[bool] = None

    type_volontariat: Optional[str] = None
    duree_volontariat: Optional[int] = Field(None, ge=0)
    hebergement: Optional[bool] = None
    indemnite: Optional[float] = Field(None, ge=0)

    @field_validator("date_limite")
    @classmethod
    def date_limite_utc(cls, v):
        return naive_utc(v)


class OffreCreate(OffreBase):
    @field_validator("salaire_max")
    @classmethod
    def salary_range(cls, v, info):
        salaire_min = info.data.get("salaire_min")
        if v is not None and salaire_min is not None and v < salaire_min:
            raise ValueError("Le salaire maximum doit être supérieur au salaire minimum")
        return v


class OffreUpdate(CamelModel):
    titre: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    url: Optional[str] = None
    date_limite: Optional[datetime] = None
    type_offre: Optional[TypeOffre] = None
    type_emploi: Optional[TypeEmploi] = None
    secteur: Optional[Secteur] = None
    niveau_experience: Optional[NiveauExperience] = None
    localisation: Optional[str] = Field(None, max_length=200)
    entreprise: Optional[str] = Field(None, max_length=200)
    tags: Optional[List[str]] = None
    competences_requises: Optional[str] = None
    salaire_min: Optional[float] = Field(None, ge=0)
    salaire_max: Optional[float] = Field(None, ge=0)
    devise: Optional[str] = None
    organisme: Optional[str] = None
    duree_formation: Optional[int] = Field(None, ge=0)
    certification: Optional[str] = None
    pays_bourse: Optional[str] = None
    niveau_etude: Optional[str] = None
    montant_bourse: Optional[float] = Field(None, ge=0)
    est_remboursable: Optional[bool] = None
    type_volontariat: Optional[str] = None
    duree_volontariat: Optional[int] = Field(None, ge=0)
    hebergement: Optional[bool] = None
    indemnite: Optional[float] = Field(None, ge=0)

    @field_validator("date_limite")
    @classmethod
    def date_limite_utc(cls, v):
        return naive_utc(v)

    # Absents = inchangés, mais jamais effacés
    @field_validator("titre", "description", "type_offre")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return v


class OffreFilters(CamelModel):
    type_offre: Optional[TypeOffre] = None
    type_emploi: Optional[TypeEmploi] = None
    secteur: Optional[Secteur] = None
    niveau_experience: Optional[NiveauExperience] = None
    localisation: Optional[str] = None
    tag: Optional[str] = None
    keyword: Optional[str] = None


class FichierOut(CamelModel):
    id: int
    nom: str
    url: str
    type: str
    taille: int
    offre_id: int
    created_at: datetime


class OffreOut(OffreBase):
    id: int
    description: str
    document_url: Optional[str] = None
    document_name: Optional[str] = None
    document_type: Optional[str] = None
    view_count: int
    date_publication: datetime
    updated_at: datetime
    auteur_id: int
    auteur: Optional[AuthorOut] = None
    fichiers: List[FichierOut] = []
    commentaires_count: int = 0
    retours_count: int = 0


class CommentaireInOffre(CamelModel):
    id: int
    contenu: str
    date_publication: datetime
    auteur: Optional[AuthorOut] = None


class OffreDetail(OffreOut):
    commentaires: List[CommentaireInOffre] = []
