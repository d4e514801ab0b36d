from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.commentaires.schemas import CommentaireCreate, CommentaireOut, CommentaireUpdate
from noken.commentaires.services import CommentaireService
from noken.db.session import get_db
from noken.utils.llm import get_llm_client

router = APIRouter(prefix="/api/commentaires", tags=["commentaires"])


def get_commentaire_service(
    db: AsyncSession = Depends(get_db),
    llm_client=Depends(get_llm_client),
) -> CommentaireService:
    return CommentaireService(db, llm_client)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CommentaireOut)
async def create_commentaire(
    payload: CommentaireCreate,
    current_user: User = Depends(get_current_user),
    service: CommentaireService = Depends(get_commentaire_service),
):
    return await service.create(payload.offre_id, payload.contenu, current_user)


@router.get("/offre/{offre_id}", response_model=List[CommentaireOut])
async def list_by_offre(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: CommentaireService = Depends(get_commentaire_service),
):
    return await service.find_by_offre(offre_id)


@router.get("/offre/{offre_id}/count")
async def count_by_offre(
    offre_id: int,
    current_user: User = Depends(get_current_user),
    service: CommentaireService = Depends(get_commentaire_service),
):
    return {"count": await service.count_by_offre(offre_id)}


@router.get("/{commentaire_id}", response_model=CommentaireOut)
async def get_commentaire(
    commentaire_id: int,
    current_user: User = Depends(get_current_user),
    service: CommentaireService = Depends(get_commentaire_service),
):
    return await service.get_commentaire(commentaire_id)


@router.put("/{commentaire_id}", response_model=CommentaireOut)
async def update_commentaire(
    commentaire_id: int,
    payload: CommentaireUpdate,
    current_user: User = Depends(get_current_user),
    service: CommentaireService = Depends(get_commentaire_service),
):
    return await service.update(commentaire_id, payload.contenu, current_user)


@router.delete("/{commentaire_id}")
async def delete_commentaire(
    commentaire_id: int,
    current_user: User = Depends(get_current_user),
    service: CommentaireService = Depends(get_commentaire_service),
):
    return await service.delete(commentaire_id, current_user)
