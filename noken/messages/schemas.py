from datetime import datetime
from typing import List, Optional

from pydantic import Field

from noken.auth.schemas import AuthorOut
from noken.schemas import CamelModel


class MessageCreate(CamelModel):
    sujet: str = Field(..., min_length=1, max_length=200)
    contenu: str = Field(..., min_length=1, max_length=2000)


class ReplyMessage(CamelModel):
    contenu: str = Field(..., min_length=1, max_length=2000)


class ReponseMessageOut(CamelModel):
    id: int
    contenu: str
    date_creation: datetime
    auteur: Optional[AuthorOut] = None


class MessageOut(CamelModel):
    id: int
    sujet: str
    contenu: str
    est_lu: bool
    date_envoi: datetime
    expediteur_id: int
    expediteur: Optional[AuthorOut] = None
    reponses: List[ReponseMessageOut] = []
