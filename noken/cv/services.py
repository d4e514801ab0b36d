import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.cv.models import CV, Experience, Formation
from noken.cv.schemas import LIST_FIELDS, CVUpsert
from noken.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class CVService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_user_id(self, user_id: int) -> Optional[CV]:
        result = await self.db.execute(
            select(CV).where(CV.user_id == user_id).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_mine(self, user_id: int) -> dict:
        cv = await self.find_by_user_id(user_id)
        return {"has_cv": cv is not None, "cv": cv}

    async def upsert(self, user_id: int, data: CVUpsert) -> CV:
        """
        Crée ou remplace le CV de l'utilisateur.

        Les expériences et formations fournies remplacent les anciennes dans la même
        transaction que les champs simples : en cas d'erreur rien n'est modifié.
        """
        values = data.model_dump(exclude_unset=True, exclude={"experiences", "formations"})
        for field in LIST_FIELDS:
            if field in values and values[field] is None:
                values[field] = []
        if values.get("est_public") is None:
            values.pop("est_public", None)

        try:
            cv = await self.find_by_user_id(user_id)
            created = cv is None
            if created:
                cv = CV(user_id=user_id, competences=[], langues=[], certifications=[], interets=[])

            for field, value in values.items():
                setattr(cv, field, value)
            if data.experiences is not None:
                cv.experiences = [Experience(**experience.model_dump()) for experience in data.experiences]
            if data.formations is not None:
                cv.formations = [Formation(**formation.model_dump()) for formation in data.formations]

            if created:
                self.db.add(cv)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"❌ Enregistrement du CV annulé pour user_id={user_id}: {e}")
            raise

        logger.info(f"CV {'créé' if created else 'mis à jour'} pour user_id={user_id}")
        return await self.find_by_user_id(user_id)

    async def delete(self, user_id: int) -> dict:
        cv = await self.find_by_user_id(user_id)
        if not cv:
            raise NotFoundError("CV non trouvé")
        await self.db.execute(delete(CV).where(CV.id == cv.id))
        await self.db.commit()
        return {"message": "CV supprimé avec succès"}

    async def find_public_by_user(self, user_id: int) -> CV:
        result = await self.db.execute(select(CV).where(CV.user_id == user_id, CV.est_public.is_(True)))
        cv = result.scalars().first()
        if not cv:
            raise NotFoundError("CV non trouvé ou non public")
        return cv

    async def find_all_public(self) -> List[CV]:
        result = await self.db.execute(
            select(CV).where(CV.est_public.is_(True)).order_by(CV.date_modification.desc(), CV.id.desc())
        )
        return result.scalars().all()

    async def find_by_competence(self, competence: str) -> List[CV]:
        # Appartenance exacte à la liste JSON, évaluée côté Python pour rester portable
        return [cv for cv in await self.find_all_public() if competence in (cv.competences or [])]

    async def count_public(self) -> int:
        return (await self.db.execute(select(func.count(CV.id)).where(CV.est_public.is_(True)))).scalar_one()
