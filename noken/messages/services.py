import logging
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import User
from noken.exceptions import ForbiddenError, NotFoundError
from noken.messages.models import Message, ReponseMessage

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, message_id: int) -> Message:
        result = await self.db.execute(
            select(Message).where(Message.id == message_id).execution_options(populate_existing=True)
        )
        message = result.scalars().first()
        if not message:
            raise NotFoundError("Message non trouvé")
        return message

    async def create(self, sujet: str, contenu: str, expediteur: User) -> Message:
        message = Message(sujet=sujet, contenu=contenu, expediteur_id=expediteur.id)
        self.db.add(message)
        await self.db.commit()
        logger.info(f"📨 Message {message.id} envoyé à l'administration par user_id={expediteur.id}")
        return await self._get(message.id)

    async def find_all(self, user: User) -> List[Message]:
        query = select(Message).order_by(Message.date_envoi.desc(), Message.id.desc())
        if not user.is_admin:
            query = query.where(Message.expediteur_id == user.id)
        return (await self.db.execute(query)).scalars().all()

    async def get(self, message_id: int, user: User) -> Message:
        message = await self._get(message_id)
        if not user.is_admin and message.expediteur_id != user.id:
            raise ForbiddenError("Accès non autorisé")
        return message

    async def mark_read(self, message_id: int) -> Message:
        message = await self._get(message_id)
        message.est_lu = True
        await self.db.commit()
        return message

    async def reply(self, message_id: int, contenu: str, admin: User) -> Message:
        message = await self._get(message_id)
        self.db.add(ReponseMessage(contenu=contenu, message_id=message_id, auteur_id=admin.id))
        message.est_lu = True
        await self.db.commit()
        return await self._get(message_id)

    async def delete(self, message_id: int) -> dict:
        await self._get(message_id)
        await self.db.execute(delete(Message).where(Message.id == message_id))
        await self.db.commit()
        return {"message": "Message supprimé avec succès"}

    async def unread_count(self) -> int:
        result = await self.db.execute(select(func.count(Message.id)).where(Message.est_lu.is_(False)))
        return result.scalar_one()
