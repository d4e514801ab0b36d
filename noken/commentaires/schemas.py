from datetime import datetime
from typing import Optional

from pydantic import Field

from noken.auth.schemas import AuthorOut
from noken.schemas import CamelModel


class CommentaireCreate(CamelModel):
    offre_id: int
    contenu: str = Field(..., min_length=1, max_length=1000)


class CommentaireUpdate(CamelModel):
    contenu: str = Field(..., min_length=1, max_length=1000)


class CommentaireOut(CamelModel):
    id: int
    contenu: str
    date_publication: datetime
    updated_at: datetime
    offre_id: int
    auteur_id: int
    auteur: Optional[AuthorOut] = None
