from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.auth.permissions import require_admin
from noken.db.session import get_db
from noken.retours.schemas import ReponseCreate, RetourCreate, RetourOut, RetourUpdate
from noken.retours.services import RetourService

router = APIRouter(prefix="/api/retours", tags=["retours"])


def get_retour_service(db: AsyncSession = Depends(get_db)) -> RetourService:
    return RetourService(db)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=RetourOut)
async def create_retour(
    payload: RetourCreate,
    current_user: User = Depends(get_current_user),
    service: RetourService = Depends(get_retour_service),
):
    return await service.create(payload.offre_id, payload.contenu, current_user)


@router.get("", response_model=List[RetourOut])
async def list_retours(
    admin: User = Depends(require_admin),
    service: RetourService = Depends(get_retour_service),
):
    return await service.find_all()


@router.get("/mes-retours", response_model=List[RetourOut])
async def my_retours(
    current_user: User = Depends(get_current_user),
    service: RetourService = Depends(get_retour_service),
):
    return await service.find_mine(current_user)


@router.get("/offre/{offre_id}", response_model=List[RetourOut])
async def retours_by_offre(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: RetourService = Depends(get_retour_service),
):
    return await service.find_by_offre(offre_id, current_user)


@router.get("/{retour_id}", response_model=RetourOut)
async def get_retour(
    retour_id: int,
    current_user: User = Depends(get_current_user),
    service: RetourService = Depends(get_retour_service),
):
    return await service.get(retour_id, current_user)


@router.put("/{retour_id}", response_model=RetourOut)
async def update_retour(
    retour_id: int,
    payload: RetourUpdate,
    current_user: User = Depends(get_current_user),
    service: RetourService = Depends(get_retour_service),
):
    return await service.update(retour_id, payload.contenu, current_user)


@router.put("/{retour_id}/reply", response_model=RetourOut)
async def reply_retour(
    retour_id: int,
    payload: ReponseCreate,
    admin: User = Depends(require_admin),
    service: RetourService = Depends(get_retour_service),
):
    return await service.reply(retour_id, payload.contenu, admin)


@router.delete("/{retour_id}")
async def delete_retour(
    retour_id: int,
    current_user: User = Depends(get_current_user),
    service: RetourService = Depends(get_retour_service),
):
    return await service.delete(retour_id, current_user)
