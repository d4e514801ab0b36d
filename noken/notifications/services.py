import logging
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import Role, User
from noken.exceptions import NotFoundError
from noken.notifications.models import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Notifications in-app.

    Les méthodes `create*` ajoutent les lignes à la session sans valider : la transaction
    de l'opération métier qui les déclenche les valide avec elle.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def create(self, user_id: int, type: NotificationType, title: str, message: str, link: Optional[str] = None) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type.value,
            title=title,
            message=message,
            link=link,
        )
        self.db.add(notification)
        return notification

    async def create_for_all_users(self, type: NotificationType, title: str, message: str, link=None, exclude_user_id=None) -> int:
        query = select(User.id).where(User.is_active.is_(True))
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        user_ids = (await self.db.execute(query)).scalars().all()
        for user_id in user_ids:
            self.create(user_id, type, title, message, link)
        logger.info(f"🔔 Notification {type.value} diffusée à {len(user_ids)} utilisateur(s)")
        return len(user_ids)

    async def create_for_admins(self, type: NotificationType, title: str, message: str, link=None) -> int:
        admin_ids = (
            await self.db.execute(select(User.id).where(User.role == Role.ADMIN.value, User.is_active.is_(True)))
        ).scalars().all()
        for admin_id in admin_ids:
            self.create(admin_id, type, title, message, link)
        return len(admin_ids)

    # ==================== MESSAGES MÉTIER ====================

    async def notify_new_offre(self, offre_id: int, titre: str, auteur_id: int) -> int:
        return await self.create_for_all_users(
            NotificationType.NEW_OFFRE,
            "Nouvelle offre disponible",
            f'Une nouvelle offre "{titre}" vient d\'être publiée.',
            f"/offres/{offre_id}",
            exclude_user_id=auteur_id,
        )

    def notify_new_message(self, recipient_id: int, sender_name: str) -> Notification:
        return self.create(
            recipient_id,
            NotificationType.NEW_MESSAGE,
            "Nouveau message",
            f"{sender_name} vous a envoyé un message.",
            "/messagerie",
        )

    async def notify_new_retour(self, auteur_name: str, offre_titre: str) -> int:
        return await self.create_for_admins(
            NotificationType.NEW_RETOUR,
            "Nouveau retour utilisateur",
            f'{auteur_name} a partagé son expérience sur l\'offre "{offre_titre}".',
            "/admin",
        )

    def notify_new_commentaire(self, offre_auteur_id: int, commenter_name: str, offre_id: int, offre_titre: str) -> Notification:
        return self.create(
            offre_auteur_id,
            NotificationType.NEW_COMMENTAIRE,
            "Nouveau commentaire",
            f'{commenter_name} a commenté votre offre "{offre_titre}".',
            f"/offres/{offre_id}",
        )

    # ==================== LECTURE ====================

    async def get_user_notifications(self, user_id: int, limit: int = 20) -> List[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def unread_count(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return result.scalar_one()

    async def _get_owned(self, notification_id: int, user_id: int) -> Notification:
        result = await self.db.execute(
            select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
        )
        notification = result.scalars().first()
        if not notification:
            raise NotFoundError("Notification non trouvée")
        return notification

    async def mark_read(self, notification_id: int, user_id: int) -> Notification:
        notification = await self._get_owned(notification_id, user_id)
        notification.is_read = True
        await self.db.commit()
        return notification

    async def mark_all_read(self, user_id: int) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount

    async def delete(self, notification_id: int, user_id: int) -> None:
        await self._get_owned(notification_id, user_id)
        await self.db.execute(delete(Notification).where(Notification.id == notification_id))
        await self.db.commit()
