import logging
from typing import Any, Dict, List

import aiofiles
from fastapi import APIRouter, Body, Depends, File, Query, UploadFile
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.cv.corrector import correct_cv
from noken.cv.extractor import keep_dated_entries, process_pdf
from noken.cv.schemas import CVOut, CVUpsert, MyCV
from noken.cv.services import CVService
from noken.db.session import get_db
from noken.exceptions import BadRequestError, NokenError
from noken.utils.files import StoredFile, remove_file, save_upload
from noken.utils.llm import get_llm_client, require_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cv", tags=["cv"])

CV_SUBDIR = "cv"
PDF_MIME_TYPE = "application/pdf"


def get_cv_service(db: AsyncSession = Depends(get_db)) -> CVService:
    return CVService(db)


async def _store_pdf(file: UploadFile) -> StoredFile:
    if not file or not file.filename:
        raise BadRequestError("Aucun fichier fourni")
    if file.content_type != PDF_MIME_TYPE:
        raise BadRequestError("Seuls les fichiers PDF sont acceptés")
    return await save_upload(file, CV_SUBDIR, {PDF_MIME_TYPE}, set(), prefix="cv-")


async def _analyse(client, stored: StoredFile) -> dict:
    async with aiofiles.open(stored.path, "rb") as f:
        content = await f.read()
    try:
        return await process_pdf(client, content)
    except Exception as e:
        message = e.message if isinstance(e, NokenError) else str(e)
        logger.error(f"❌ Analyse du CV {stored.path} impossible: {message}")
        raise BadRequestError(f"Erreur lors de l'analyse du CV: {message}")


@router.get("/me", response_model=MyCV)
async def get_my_cv(
    current_user: User = Depends(get_current_user),
    service: CVService = Depends(get_cv_service),
):
    return await service.get_mine(current_user.id)


@router.post("/me", response_model=CVOut)
async def save_my_cv(
    payload: CVUpsert,
    current_user: User = Depends(get_current_user),
    service: CVService = Depends(get_cv_service),
):
    return await service.upsert(current_user.id, payload)


@router.delete("/me")
async def delete_my_cv(
    current_user: User = Depends(get_current_user),
    service: CVService = Depends(get_cv_service),
):
    return await service.delete(current_user.id)


@router.post("/correct")
async def correct_my_cv(
    payload: Dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
    llm_client=Depends(get_llm_client),
):
    corrected = await correct_cv(require_client(llm_client), payload)
    return {"success": True, "data": corrected, "corrections": corrected.get("corrections", [])}


@router.get("/public", response_model=List[CVOut])
async def list_public_cvs(service: CVService = Depends(get_cv_service)):
    return await service.find_all_public()


@router.get("/search", response_model=List[CVOut])
async def search_by_competence(
    competence: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    service: CVService = Depends(get_cv_service),
):
    return await service.find_by_competence(competence)


@router.get("/user/{user_id}", response_model=CVOut)
async def get_public_cv(user_id: int, service: CVService = Depends(get_cv_service)):
    return await service.find_public_by_user(user_id)


@router.post("/upload")
async def upload_cv(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    llm_client=Depends(get_llm_client),
):
    client = require_client(llm_client)
    stored = await _store_pdf(file)
    extracted = await _analyse(client, stored)
    return {
        "success": True,
        "message": "CV analysé avec succès",
        "extractedData": extracted,
        "filePath": str(stored.path),
    }


@router.post("/upload-and-save")
async def upload_and_save_cv(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    llm_client=Depends(get_llm_client),
    service: CVService = Depends(get_cv_service),
):
    client = require_client(llm_client)
    stored = await _store_pdf(file)
    try:
        extracted = await _analyse(client, stored)
        data = CVUpsert.model_validate(keep_dated_entries(extracted))
    except NokenError:
        remove_file(stored.path)
        raise
    except ValidationError as e:
        remove_file(stored.path)
        raise BadRequestError(f"Erreur lors de l'analyse du CV: {e.errors()[0].get('msg')}")

    cv = await service.upsert(current_user.id, data)
    return {
        "success": True,
        "message": "CV analysé et sauvegardé avec succès",
        "cv": CVOut.model_validate(cv).model_dump(by_alias=True, mode="json"),
    }
