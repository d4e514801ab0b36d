import logging
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import User
from noken.auth.permissions import ensure_owner_or_admin
from noken.commentaires.models import Commentaire
from noken.commentaires.moderation import moderate_content
from noken.exceptions import NotFoundError
from noken.notifications.services import NotificationService
from noken.offres.models import Offre

logger = logging.getLogger(__name__)


class CommentaireService:
    def __init__(self, db: AsyncSession, llm_client=None):
        self.db = db
        self.llm_client = llm_client
        self.notifications = NotificationService(db)

    async def get_commentaire(self, commentaire_id: int) -> Commentaire:
        result = await self.db.execute(
            select(Commentaire)
            .where(Commentaire.id == commentaire_id)
            .execution_options(populate_existing=True)
        )
        commentaire = result.scalars().first()
        if not commentaire:
            raise NotFoundError("Commentaire non trouvé")
        return commentaire

    async def create(self, offre_id: int, contenu: str, auteur: User) -> Commentaire:
        result = await self.db.execute(select(Offre).where(Offre.id == offre_id))
        offre = result.scalars().first()
        if not offre:
            raise NotFoundError("Offre non trouvée")

        appropriate, contenu = await moderate_content(self.llm_client, contenu)
        if not appropriate:
            logger.info(f"Commentaire de user_id={auteur.id} modéré sur l'offre {offre_id}")

        commentaire = Commentaire(contenu=contenu, offre_id=offre_id, auteur_id=auteur.id)
        self.db.add(commentaire)
        if offre.auteur_id != auteur.id:
            self.notifications.notify_new_commentaire(offre.auteur_id, auteur.display_name, offre.id, offre.titre)
        await self.db.commit()
        return await self.get_commentaire(commentaire.id)

    async def find_by_offre(self, offre_id: int) -> List[Commentaire]:
        result = await self.db.execute(
            select(Commentaire)
            .where(Commentaire.offre_id == offre_id)
            .order_by(Commentaire.date_publication.desc(), Commentaire.id.desc())
        )
        return result.scalars().all()

    async def update(self, commentaire_id: int, contenu: str, actor: User) -> Commentaire:
        commentaire = await self.get_commentaire(commentaire_id)
        ensure_owner_or_admin(actor, commentaire.auteur_id, "Vous ne pouvez pas modifier ce commentaire")
        commentaire.contenu = contenu
        await self.db.commit()
        return await self.get_commentaire(commentaire_id)

    async def delete(self, commentaire_id: int, actor: User) -> dict:
        commentaire = await self.get_commentaire(commentaire_id)
        ensure_owner_or_admin(actor, commentaire.auteur_id, "Vous ne pouvez pas supprimer ce commentaire")
        await self.db.execute(delete(Commentaire).where(Commentaire.id == commentaire_id))
        await self.db.commit()
        return {"message": "Commentaire supprimé avec succès"}

    async def count_by_offre(self, offre_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Commentaire.id)).where(Commentaire.offre_id == offre_id)
        )
        return result.scalar_one()
