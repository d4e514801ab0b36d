from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, field_validator

from noken.auth.schemas import AuthorOut
from noken.schemas import CamelModel

LIST_FIELDS = ("competences", "langues", "certifications", "interets")


class ExperienceIn(CamelModel):
    poste: str
    entreprise: str
    ville: Optional[str] = None
    date_debut: date
    date_fin: Optional[date] = None
    en_cours: bool = False
    description: Optional[str] = None

    @field_validator("en_cours", mode="before")
    @classmethod
    def en_cours_default(cls, v):
        return bool(v)


class FormationIn(CamelModel):
    diplome: str
    etablissement: str
    ville: Optional[str] = None
    date_debut: date
    date_fin: Optional[date] = None
    en_cours: bool = False
    description: Optional[str] = None

    @field_validator("en_cours", mode="before")
    @classmethod
    def en_cours_default(cls, v):
        return bool(v)


class CVUpsert(CamelModel):
    titre_professionnel: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    ville: Optional[str] = None
    code_postal: Optional[str] = None
    pays: Optional[str] = None
    linkedin: Optional[str] = None
    site_web: Optional[str] = None
    github: Optional[str] = None
    resume: Optional[str] = None
    competences: Optional[List[str]] = None
    langues: Optional[List[str]] = None
    certifications: Optional[List[str]] = None
    interets: Optional[List[str]] = None
    est_public: Optional[bool] = None
    experiences: Optional[List[ExperienceIn]] = None
    formations: Optional[List[FormationIn]] = None


class ExperienceOut(ExperienceIn):
    id: int


class FormationOut(FormationIn):
    id: int


class CVOut(CamelModel):
    id: int
    user_id: int
    titre_professionnel: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    ville: Optional[str] = None
    code_postal: Optional[str] = None
    pays: Optional[str] = None
    linkedin: Optional[str] = None
    site_web: Optional[str] = None
    github: Optional[str] = None
    resume: Optional[str] = None
    competences: List[str] = []
    langues: List[str] = []
    certifications: List[str] = []
    interets: List[str] = []
    est_public: bool
    date_creation: datetime
    date_modification: datetime
    user: Optional[AuthorOut] = None
    experiences: List[ExperienceOut] = []
    formations: List[FormationOut] = []


class MyCV(CamelModel):
    has_cv: bool = Field(..., alias="hasCV")
    cv: Optional[CVOut] = None
