from datetime import datetime
from typing import List, Optional

from pydantic import Field

from noken.auth.schemas import AuthorOut
from noken.offres.models import TypeOffre
from noken.schemas import CamelModel


class RetourCreate(CamelModel):
    offre_id: int
    contenu: str = Field(..., min_length=1, max_length=2000)


class RetourUpdate(CamelModel):
    contenu: str = Field(..., min_length=1, max_length=2000)


class ReponseCreate(CamelModel):
    contenu: str = Field(..., min_length=1, max_length=2000)


class OffreSummary(CamelModel):
    id: int
    titre: str
    type_offre: TypeOffre
    entreprise: Optional[str] = None


class ReponseRetourOut(CamelModel):
    id: int
    contenu: str
    date_creation: datetime
    auteur: Optional[AuthorOut] = None


class RetourOut(CamelModel):
    id: int
    contenu: str
    statut: str
    date_publication: datetime
    updated_at: datetime
    offre_id: int
    auteur_id: int
    auteur: Optional[AuthorOut] = None
    offre: Optional[OffreSummary] = None
    reponses: List[ReponseRetourOut] = []
