from datetime import date
from typing import Dict, List, Optional

from pydantic import Field

from noken.auth.models import Role, Sexe, StatutProfessionnel
from noken.offres.schemas import OffreOut
from noken.schemas import CamelModel


class UserUpdate(CamelModel):
    username: Optional[str] = Field(None, max_length=100)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    picture_url: Optional[str] = Field(None, max_length=500)
    pays: Optional[str] = Field(None, max_length=100)
    commune: Optional[str] = Field(None, max_length=100)
    quartier: Optional[str] = Field(None, max_length=100)
    statut_professionnel: Optional[StatutProfessionnel] = None
    sexe: Optional[Sexe] = None
    date_naissance: Optional[date] = None
    adresse: Optional[str] = Field(None, max_length=255)
    telephone: Optional[str] = Field(None, max_length=50)
    handicap: Optional[bool] = None
    type_handicap: Optional[str] = Field(None, max_length=255)


class ChangeRole(CamelModel):
    role: Role


class ChangeStatut(CamelModel):
    statut_professionnel: StatutProfessionnel


class DashboardStats(CamelModel):
    total_offres: int
    total_favorites: int
    total_retours: int
    offres_by_type: Dict[str, int]
    recent_offres: List[OffreOut]
