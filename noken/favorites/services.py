import logging
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from noken.exceptions import ConflictError, NotFoundError
from noken.favorites.models import Favorite
from noken.offres.models import Offre

logger = logging.getLogger(__name__)

ALREADY_FAVORITE = "Cette offre est déjà dans vos favoris"


class FavoriteService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, user_id: int, offre_id: int):
        result = await self.db.execute(
            select(Favorite).where(Favorite.user_id == user_id, Favorite.offre_id == offre_id)
        )
        return result.scalars().first()

    async def add(self, user_id: int, offre_id: int) -> Favorite:
        offre = (await self.db.execute(select(Offre.id).where(Offre.id == offre_id))).scalar_one_or_none()
        if offre is None:
            raise NotFoundError("Offre non trouvée")
        if await self._find(user_id, offre_id):
            raise ConflictError(ALREADY_FAVORITE)

        favorite = Favorite(user_id=user_id, offre_id=offre_id)
        self.db.add(favorite)
        try:
            await self.db.commit()
        except IntegrityError:
            # Ajout concurrent de la même paire
            await self.db.rollback()
            raise ConflictError(ALREADY_FAVORITE)
        logger.info(f"⭐ Favori ajouté: user_id={user_id}, offre_id={offre_id}")
        result = await self.db.execute(
            select(Favorite).where(Favorite.id == favorite.id).execution_options(populate_existing=True)
        )
        return result.scalars().one()

    async def remove(self, user_id: int, offre_id: int) -> dict:
        favorite = await self._find(user_id, offre_id)
        if not favorite:
            raise NotFoundError("Favori non trouvé")
        await self.db.execute(delete(Favorite).where(Favorite.id == favorite.id))
        await self.db.commit()
        return {"message": "Favori supprimé avec succès"}

    async def find_by_user(self, user_id: int) -> List[Favorite]:
        result = await self.db.execute(
            select(Favorite)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        )
        return result.scalars().all()

    async def is_favorite(self, user_id: int, offre_id: int) -> bool:
        return await self._find(user_id, offre_id) is not None

    async def count_by_user(self, user_id: int) -> int:
        result = await self.db.execute(select(func.count(Favorite.id)).where(Favorite.user_id == user_id))
        return result.scalar_one()
