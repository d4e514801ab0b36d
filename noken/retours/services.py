import logging
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import User
from noken.auth.permissions import ensure_owner_or_admin
from noken.exceptions import NotFoundError
from noken.notifications.services import NotificationService
from noken.offres.models import Offre
from noken.retours.models import ReponseRetour, Retour

logger = logging.getLogger(__name__)


class RetourService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def _get(self, retour_id: int) -> Retour:
        result = await self.db.execute(
            select(Retour).where(Retour.id == retour_id).execution_options(populate_existing=True)
        )
        retour = result.scalars().first()
        if not retour:
            raise NotFoundError("Retour non trouvé")
        return retour

    async def _list(self, *conditions) -> List[Retour]:
        result = await self.db.execute(
            select(Retour)
            .where(*conditions)
            .order_by(Retour.date_publication.desc(), Retour.id.desc())
        )
        return result.scalars().all()

    async def create(self, offre_id: int, contenu: str, auteur: User) -> Retour:
        offre = (await self.db.execute(select(Offre).where(Offre.id == offre_id))).scalars().first()
        if not offre:
            raise NotFoundError("Offre non trouvée")

        retour = Retour(contenu=contenu, offre_id=offre_id, auteur_id=auteur.id)
        self.db.add(retour)
        await self.notifications.notify_new_retour(auteur.display_name, offre.titre)
        await self.db.commit()
        logger.info(f"Retour créé: id={retour.id} sur l'offre {offre_id} par user_id={auteur.id}")
        return await self._get(retour.id)

    async def find_all(self) -> List[Retour]:
        return await self._list()

    async def find_mine(self, user: User) -> List[Retour]:
        return await self._list(Retour.auteur_id == user.id)

    async def find_by_offre(self, offre_id: int, user: User) -> List[Retour]:
        """Les administrateurs voient tous les retours de l'offre, les autres seulement les leurs."""
        conditions = [Retour.offre_id == offre_id]
        if not user.is_admin:
            conditions.append(Retour.auteur_id == user.id)
        return await self._list(*conditions)

    async def get(self, retour_id: int, user: User) -> Retour:
        retour = await self._get(retour_id)
        ensure_owner_or_admin(user, retour.auteur_id, "Accès non autorisé")
        return retour

    async def update(self, retour_id: int, contenu: str, user: User) -> Retour:
        retour = await self._get(retour_id)
        ensure_owner_or_admin(user, retour.auteur_id, "Vous ne pouvez pas modifier ce retour")
        retour.contenu = contenu
        await self.db.commit()
        return await self._get(retour_id)

    async def reply(self, retour_id: int, contenu: str, admin: User) -> Retour:
        await self._get(retour_id)
        self.db.add(ReponseRetour(contenu=contenu, retour_id=retour_id, auteur_id=admin.id))
        await self.db.commit()
        logger.info(f"Réponse ajoutée au retour {retour_id} par admin_id={admin.id}")
        return await self._get(retour_id)

    async def delete(self, retour_id: int, user: User) -> dict:
        retour = await self._get(retour_id)
        ensure_owner_or_admin(user, retour.auteur_id, "Vous ne pouvez pas supprimer ce retour")
        await self.db.execute(delete(Retour).where(Retour.id == retour_id))
        await self.db.commit()
        return {"message": "Retour supprimé avec succès"}

    async def count(self) -> int:
        return (await self.db.execute(select(func.count(Retour.id)))).scalar_one()
