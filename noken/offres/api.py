import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.db.session import get_db
from noken.exceptions import BadRequestError, NotFoundError
from noken.offres.models import NiveauExperience, Secteur, TypeEmploi, TypeOffre
from noken.offres.schemas import OffreCreate, OffreDetail, OffreFilters, OffreOut, OffreUpdate
from noken.offres.services import DOCUMENTS_SUBDIR, OffreService
from noken.schemas import Page
from noken.utils.files import save_upload, upload_root

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/offres", tags=["offres"])

DOCUMENT_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
}
DOCUMENT_EXTENSIONS = {".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png"}


def get_offre_service(db: AsyncSession = Depends(get_db)) -> OffreService:
    return OffreService(db)


def _parse_form(model, raw: str):
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        messages = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise BadRequestError(messages)


async def _store_document(document: Optional[UploadFile]):
    if document is None or not document.filename:
        return None
    return await save_upload(document, DOCUMENTS_SUBDIR, DOCUMENT_MIME_TYPES, DOCUMENT_EXTENSIONS)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=OffreDetail)
async def create_offre(
    payload: OffreCreate,
    current_user: User = Depends(get_current_user),
    service: OffreService = Depends(get_offre_service),
):
    return await service.create(payload, current_user)


@router.post("/with-document", status_code=status.HTTP_201_CREATED, response_model=OffreDetail)
async def create_offre_with_document(
    data: str = Form(..., description="Offre au format JSON"),
    document: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: OffreService = Depends(get_offre_service),
):
    payload = _parse_form(OffreCreate, data)
    stored = await _store_document(document)
    return await service.create(payload, current_user, document=stored)


@router.get("", response_model=Page[OffreOut])
async def list_offres(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type_offre: Optional[TypeOffre] = Query(None, alias="typeOffre"),
    type_emploi: Optional[TypeEmploi] = Query(None, alias="typeEmploi"),
    secteur: Optional[Secteur] = Query(None),
    niveau_experience: Optional[NiveauExperience] = Query(None, alias="niveauExperience"),
    localisation: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    keyword: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: OffreService = Depends(get_offre_service),
):
    filters = OffreFilters(
        type_offre=type_offre,
        type_emploi=type_emploi,
        secteur=secteur,
        niveau_experience=niveau_experience,
        localisation=localisation,
        tag=tag,
        keyword=keyword,
    )
    return await service.find_all(filters, page, limit)


@router.get("/types")
async def get_types():
    return OffreService.get_types()


@router.get("/mes-offres", response_model=List[OffreOut])
async def my_offres(
    current_user: User = Depends(get_current_user),
    service: OffreService = Depends(get_offre_service),
):
    return await service.find_by_auteur(current_user.id)


@router.get("/documents/{filename}")
async def get_document(filename: str):
    path = upload_root() / DOCUMENTS_SUBDIR / Path(filename).name
    if not path.is_file():
        raise NotFoundError("Document non trouvé")
    return FileResponse(path)


@router.get("/{offre_id}", response_model=OffreDetail)
async def get_offre(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: OffreService = Depends(get_offre_service),
):
    return await service.view(offre_id)


@router.put("/{offre_id}", response_model=OffreDetail)
async def update_offre(
    offre_id: int,
    payload: OffreUpdate,
    current_user: User = Depends(get_current_user),
    service: OffreService = Depends(get_offre_service),
):
    return await service.update(offre_id, payload, current_user)


@router.put("/{offre_id}/with-document", response_model=OffreDetail)
async def update_offre_with_document(
    offre_id: int,
    data: str = Form("{}"),
    document: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: OffreService = Depends(get_offre_service),
):
    payload = _parse_form(OffreUpdate, data)
    # Vérifie les droits avant d'écrire le fichier sur disque
    await service.get_editable(offre_id, current_user)
    stored = await _store_document(document)
    return await service.update(offre_id, payload, current_user, document=stored)


@router.delete("/{offre_id}")
async def delete_offre(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: OffreService = Depends(get_offre_service),
):
    return await service.delete(offre_id, current_user)
