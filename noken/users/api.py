from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.auth.permissions import require_admin
from noken.auth.schemas import UserOut
from noken.db.session import get_db
from noken.users.schemas import ChangeRole, ChangeStatut, DashboardStats, UserUpdate
from noken.users.services import UserService

router = APIRouter(prefix="/api/users", tags=["users"])
dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=List[UserOut])
async def list_users(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.find_all()


@router.get("/me", response_model=UserOut)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.get_user(user_id)


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.update(user_id, payload, current_user)


@router.put("/{user_id}/toggle-active", response_model=UserOut)
async def toggle_active(
    user_id: int,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return await service.toggle_active(user_id)


@router.put("/{user_id}/change-role", response_model=UserOut)
async def change_role(
    user_id: int,
    payload: ChangeRole,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return await service.change_role(user_id, payload.role)


@router.put("/{user_id}/change-statut-professionnel", response_model=UserOut)
async def change_statut_professionnel(
    user_id: int,
    payload: ChangeStatut,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.change_statut_professionnel(user_id, payload.statut_professionnel, current_user)


@router.post("/{user_id}/upload-profile-picture", response_model=UserOut)
async def upload_profile_picture(
    user_id: int,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.update_profile_picture(user_id, file, current_user)


@router.post("/{user_id}/photo", response_model=UserOut)
async def upload_photo(
    user_id: int,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.update_profile_picture(user_id, file, current_user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return await service.delete(user_id)


@dashboard_router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return await service.dashboard_stats(current_user)
