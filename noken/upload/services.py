import logging
from typing import List

from fastapi import UploadFile
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import User
from noken.auth.permissions import ensure_owner_or_admin
from noken.exceptions import BadRequestError, NotFoundError
from noken.offres.models import Offre, OffreFichier
from noken.utils.files import local_path_from_url, remove_file, save_upload

logger = logging.getLogger(__name__)

OFFRES_SUBDIR = "offres"
MAX_FILES_PER_UPLOAD = 10

ALLOWED_MIME_TYPES = {
    # Images
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    # Documents
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
    # Archives
    "application/zip",
    "application/x-zip-compressed",
    "application/x-rar-compressed",
    "application/vnd.rar",
    "application/octet-stream",
}

ALLOWED_EXTENSIONS = {
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".txt", ".csv", ".zip", ".rar",
}


class UploadService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_offre(self, offre_id: int) -> Offre:
        result = await self.db.execute(select(Offre).where(Offre.id == offre_id))
        offre = result.scalars().first()
        if not offre:
            raise NotFoundError("Offre non trouvée")
        return offre

    async def _get_fichier(self, fichier_id: int) -> OffreFichier:
        result = await self.db.execute(select(OffreFichier).where(OffreFichier.id == fichier_id))
        fichier = result.scalars().first()
        if not fichier:
            raise NotFoundError("Fichier non trouvé")
        return fichier

    async def _ensure_can_edit(self, offre_id: int, actor: User) -> Offre:
        offre = await self._get_offre(offre_id)
        ensure_owner_or_admin(actor, offre.auteur_id, "Vous ne pouvez pas modifier les fichiers de cette offre")
        return offre

    async def upload_files(self, offre_id: int, files: List[UploadFile], actor: User) -> List[OffreFichier]:
        if not files:
            raise BadRequestError("Aucun fichier fourni")
        if len(files) > MAX_FILES_PER_UPLOAD:
            raise BadRequestError(f"Maximum {MAX_FILES_PER_UPLOAD} fichiers par envoi")

        await self._ensure_can_edit(offre_id, actor)

        stored_files = []
        try:
            for file in files:
                stored_files.append(await save_upload(file, OFFRES_SUBDIR, ALLOWED_MIME_TYPES, ALLOWED_EXTENSIONS))
        except Exception:
            for stored in stored_files:
                remove_file(stored.path)
            raise

        fichiers = [
            OffreFichier(
                nom=stored.original_name,
                url=stored.url,
                type=stored.content_type,
                taille=stored.size,
                offre_id=offre_id,
            )
            for stored in stored_files
        ]
        self.db.add_all(fichiers)
        await self.db.commit()
        logger.info(f"📎 {len(fichiers)} fichier(s) ajouté(s) à l'offre {offre_id}")
        return fichiers

    async def get_files(self, offre_id: int) -> List[OffreFichier]:
        await self._get_offre(offre_id)
        result = await self.db.execute(
            select(OffreFichier)
            .where(OffreFichier.offre_id == offre_id)
            .order_by(OffreFichier.created_at.desc(), OffreFichier.id.desc())
        )
        return result.scalars().all()

    async def delete_file(self, fichier_id: int, actor: User) -> dict:
        fichier = await self._get_fichier(fichier_id)
        await self._ensure_can_edit(fichier.offre_id, actor)
        path = local_path_from_url(fichier.url)
        await self.db.execute(delete(OffreFichier).where(OffreFichier.id == fichier_id))
        await self.db.commit()
        remove_file(path)
        return {"message": "Fichier supprimé avec succès"}

    async def rename_file(self, fichier_id: int, nom: str, actor: User) -> OffreFichier:
        fichier = await self._get_fichier(fichier_id)
        await self._ensure_can_edit(fichier.offre_id, actor)
        fichier.nom = nom
        await self.db.commit()
        return fichier
