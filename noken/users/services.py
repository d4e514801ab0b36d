import logging
from typing import List

from fastapi import UploadFile
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import Role, StatutProfessionnel, User
from noken.exceptions import ForbiddenError, NotFoundError
from noken.favorites.services import FavoriteService
from noken.offres.services import OffreService
from noken.retours.models import Retour
from noken.users.schemas import UserUpdate
from noken.utils.files import IMAGE_EXTENSIONS, IMAGE_MIME_TYPES, local_path_from_url, remove_file, save_upload

logger = logging.getLogger(__name__)

PROFILES_SUBDIR = "profiles"
MAX_PROFILE_PICTURE_SIZE = 5 * 1024 * 1024


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_all(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
        return result.scalars().all()

    async def get_user(self, user_id: int) -> User:
        result = await self.db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        user = result.scalars().first()
        if not user:
            raise NotFoundError("Utilisateur non trouvé")
        return user

    async def update(self, user_id: int, data: UserUpdate, actor: User) -> User:
        user = await self.get_user(user_id)
        if user.id != actor.id:
            raise ForbiddenError("Vous ne pouvez modifier que votre propre profil")

        for field, value in data.model_dump(exclude_unset=True).items():
            if hasattr(value, "value"):
                value = value.value
            setattr(user, field, value)
        await self.db.commit()
        logger.info(f"Profil mis à jour: user_id={user_id}")
        return user

    async def toggle_active(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        return await self.set_active(user, not user.is_active)

    async def set_active(self, user: User, is_active: bool) -> User:
        user.is_active = is_active
        await self.db.commit()
        logger.info(f"Compte user_id={user.id} {'activé' if is_active else 'désactivé'}")
        return user

    async def change_role(self, user_id: int, role: Role) -> User:
        user = await self.get_user(user_id)
        user.role = role.value
        await self.db.commit()
        logger.info(f"Rôle de user_id={user_id} changé en {role.value}")
        return user

    async def change_statut_professionnel(self, user_id: int, statut: StatutProfessionnel, actor: User) -> User:
        user = await self.get_user(user_id)
        if user.id != actor.id:
            raise ForbiddenError("Vous ne pouvez modifier que votre propre statut")
        user.statut_professionnel = statut.value
        await self.db.commit()
        return user

    async def update_profile_picture(self, user_id: int, file: UploadFile, actor: User) -> User:
        if user_id != actor.id:
            raise ForbiddenError("Vous ne pouvez modifier que votre propre photo")
        user = await self.get_user(user_id)

        stored = await save_upload(
            file,
            PROFILES_SUBDIR,
            IMAGE_MIME_TYPES,
            IMAGE_EXTENSIONS,
            prefix="profile-",
            max_size=MAX_PROFILE_PICTURE_SIZE,
        )
        old_picture = local_path_from_url(user.picture_url)
        user.picture_url = stored.url
        await self.db.commit()
        remove_file(old_picture)
        return user

    async def delete(self, user_id: int) -> dict:
        await self.get_user(user_id)
        await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.commit()
        logger.info(f"Utilisateur supprimé: user_id={user_id}")
        return {"message": "Utilisateur supprimé avec succès"}

    async def count(self) -> int:
        return (await self.db.execute(select(func.count(User.id)))).scalar_one()

    async def count_by_role(self) -> dict:
        rows = await self.db.execute(select(User.role, func.count(User.id)).group_by(User.role))
        counts = dict(rows.all())
        return {
            "admins": counts.get(Role.ADMIN.value, 0),
            "membres": counts.get(Role.MEMBRE.value, 0),
            "partenaires": counts.get(Role.PARTENAIRE.value, 0),
        }

    async def dashboard_stats(self, user: User) -> dict:
        offres = OffreService(self.db)
        total_retours = (
            await self.db.execute(select(func.count(Retour.id)).where(Retour.auteur_id == user.id))
        ).scalar_one()
        return {
            "total_offres": await offres.count(),
            "total_favorites": await FavoriteService(self.db).count_by_user(user.id),
            "total_retours": total_retours,
            "offres_by_type": await offres.count_by_type(),
            "recent_offres": await offres.serialize_many(await offres.recent(5)),
        }
