from datetime import datetime

from noken.offres.schemas import OffreOut
from noken.schemas import CamelModel


class FavoriteOut(CamelModel):
    id: int
    user_id: int
    offre_id: int
    created_at: datetime
    offre: OffreOut


class FavoriteCheck(CamelModel):
    is_favorite: bool
