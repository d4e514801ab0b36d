from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.db.session import get_db
from noken.favorites.schemas import FavoriteCheck, FavoriteOut
from noken.favorites.services import FavoriteService
from noken.offres.services import OffreService

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


@router.post("/{offre_id}", status_code=status.HTTP_201_CREATED, response_model=FavoriteOut)
async def add_favorite(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: FavoriteService = Depends(get_favorite_service),
):
    return await service.add(current_user.id, offre_id)


@router.delete("/{offre_id}")
async def remove_favorite(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: FavoriteService = Depends(get_favorite_service),
):
    return await service.remove(current_user.id, offre_id)


@router.get("", response_model=List[FavoriteOut])
async def list_favorites(
    current_user: User = Depends(get_current_user),
    service: FavoriteService = Depends(get_favorite_service),
):
    favorites = await service.find_by_user(current_user.id)
    offres = await OffreService(service.db).serialize_many([favorite.offre for favorite in favorites])
    return [
        FavoriteOut.model_validate(favorite).model_copy(update={"offre": offre})
        for favorite, offre in zip(favorites, offres)
    ]


@router.get("/{offre_id}/check", response_model=FavoriteCheck)
async def check_favorite(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: FavoriteService = Depends(get_favorite_service),
):
    return FavoriteCheck(is_favorite=await service.is_favorite(current_user.id, offre_id))
