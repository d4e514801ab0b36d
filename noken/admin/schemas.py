from datetime import datetime
from typing import List, Optional

from noken.auth.models import Role, StatutProfessionnel
from noken.auth.schemas import UserOut, UserSummary
from noken.cv.schemas import CVOut
from noken.offres.schemas import OffreOut
from noken.retours.schemas import RetourOut
from noken.schemas import CamelModel


class PageMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class AdminUserRow(UserSummary):
    is_active: bool
    statut_professionnel: StatutProfessionnel
    created_at: datetime
    retours_count: int = 0
    offres_count: int = 0


class AdminUserPage(CamelModel):
    data: List[AdminUserRow]
    meta: PageMeta


class AdminUserDetail(UserOut):
    cv: Optional[CVOut] = None
    recent_retours: List[RetourOut] = []
    recent_offres: List[OffreOut] = []
    retours_count: int = 0
    offres_count: int = 0
    favorites_count: int = 0


class AdminOffrePage(CamelModel):
    data: List[OffreOut]
    meta: PageMeta


class AdminOffreDetail(OffreOut):
    retours: List[RetourOut] = []


class SetRole(CamelModel):
    role: Role


class SetActive(CamelModel):
    is_active: bool
