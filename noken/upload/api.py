from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.db.session import get_db
from noken.offres.schemas import FichierOut
from noken.schemas import CamelModel
from noken.upload.services import UploadService

router = APIRouter(prefix="/upload", tags=["upload"])


class RenameFichier(CamelModel):
    nom: str = Field(..., min_length=1, max_length=255)


def get_upload_service(db: AsyncSession = Depends(get_db)) -> UploadService:
    return UploadService(db)


@router.post("/offre/{offre_id}", status_code=status.HTTP_201_CREATED, response_model=FichierOut)
async def upload_file(
    offre_id: int,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    fichiers = await service.upload_files(offre_id, [file], current_user)
    return fichiers[0]


@router.post("/offre/{offre_id}/multiple", status_code=status.HTTP_201_CREATED, response_model=List[FichierOut])
async def upload_files(
    offre_id: int,
    files: List[UploadFile] = File(...),
    current_user: User = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    return await service.upload_files(offre_id, files, current_user)


@router.get("/offre/{offre_id}", response_model=List[FichierOut])
async def list_files(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    return await service.get_files(offre_id)


@router.delete("/{fichier_id}")
async def delete_file(
    fichier_id: int,
    current_user: User = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    return await service.delete_file(fichier_id, current_user)


@router.patch("/{fichier_id}", response_model=FichierOut)
async def rename_file(
    fichier_id: int,
    payload: RenameFichier,
    current_user: User = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    return await service.rename_file(fichier_id, payload.nom, current_user)
