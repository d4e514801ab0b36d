from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from noken.admin.schemas import (
    AdminOffreDetail,
    AdminOffrePage,
    AdminUserDetail,
    AdminUserPage,
    SetActive,
    SetRole,
)
from noken.admin.services import AdminService
from noken.auth.models import User
from noken.auth.permissions import require_admin
from noken.auth.schemas import UserOut
from noken.db.session import get_db
from noken.offres.models import TypeOffre

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


@router.get("/statistics")
async def statistics(service: AdminService = Depends(get_admin_service)):
    return await service.get_statistics()


@router.get("/disaggregation")
async def disaggregation(service: AdminService = Depends(get_admin_service)):
    return await service.get_disaggregation()


@router.get("/users", response_model=AdminUserPage)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    service: AdminService = Depends(get_admin_service),
):
    return await service.get_users(page, limit, search)


@router.get("/users/{user_id}", response_model=AdminUserDetail)
async def get_user(user_id: int, service: AdminService = Depends(get_admin_service)):
    return await service.get_user(user_id)


@router.post("/users/{user_id}/role", response_model=UserOut)
async def set_role(user_id: int, payload: SetRole, service: AdminService = Depends(get_admin_service)):
    return await service.set_role(user_id, payload.role)


@router.post("/users/{user_id}/toggle-active", response_model=UserOut)
async def set_active(user_id: int, payload: SetActive, service: AdminService = Depends(get_admin_service)):
    return await service.set_active(user_id, payload.is_active)


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, service: AdminService = Depends(get_admin_service)):
    return await service.delete_user(user_id)


@router.get("/offres", response_model=AdminOffrePage)
async def list_offres(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    type_offre: Optional[TypeOffre] = Query(None, alias="typeOffre"),
    service: AdminService = Depends(get_admin_service),
):
    return await service.get_offres(page, limit, search, type_offre)


@router.get("/offres/{offre_id}", response_model=AdminOffreDetail)
async def get_offre(offre_id: int, service: AdminService = Depends(get_admin_service)):
    return await service.get_offre(offre_id)


@router.delete("/offres/{offre_id}")
async def delete_offre(
    offre_id: int,
    admin: User = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return await service.delete_offre(offre_id, admin)
