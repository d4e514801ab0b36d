import logging
from typing import List

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.models import Role, User
from noken.exceptions import BadRequestError, ForbiddenError, NotFoundError
from noken.messaging.models import PrivateConversation, PrivateMessage
from noken.notifications.services import NotificationService
from noken.utils.dates import utcnow

logger = logging.getLogger(__name__)


def ordered_pair(user_id: int, other_user_id: int):
    return (user_id, other_user_id) if user_id < other_user_id else (other_user_id, user_id)


class MessagingService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def _get_conversation(self, conversation_id: int, user_id: int) -> PrivateConversation:
        result = await self.db.execute(
            select(PrivateConversation).where(PrivateConversation.id == conversation_id)
        )
        conversation = result.scalars().first()
        if not conversation:
            raise NotFoundError("Conversation non trouvée")
        if not conversation.has_participant(user_id):
            raise ForbiddenError("Accès non autorisé à cette conversation")
        return conversation

    async def _get_own_message(self, message_id: int, user_id: int, action: str) -> PrivateMessage:
        result = await self.db.execute(
            select(PrivateMessage)
            .where(PrivateMessage.id == message_id)
            .execution_options(populate_existing=True)
        )
        message = result.scalars().first()
        if not message:
            raise NotFoundError("Message non trouvé")
        if message.sender_id != user_id:
            raise ForbiddenError(f"Vous ne pouvez {action} que vos propres messages")
        return message

    async def get_conversations(self, user_id: int) -> List[dict]:
        result = await self.db.execute(
            select(PrivateConversation)
            .where(or_(PrivateConversation.user1_id == user_id, PrivateConversation.user2_id == user_id))
            .order_by(PrivateConversation.updated_at.desc(), PrivateConversation.id.desc())
        )
        conversations = result.scalars().all()
        ids = [conversation.id for conversation in conversations]

        unread = {}
        if ids:
            rows = await self.db.execute(
                select(PrivateMessage.conversation_id, func.count(PrivateMessage.id))
                .where(
                    PrivateMessage.conversation_id.in_(ids),
                    PrivateMessage.sender_id != user_id,
                    PrivateMessage.is_read.is_(False),
                )
                .group_by(PrivateMessage.conversation_id)
            )
            unread = dict(rows.all())

        items = []
        for conversation in conversations:
            last_message = (
                await self.db.execute(
                    select(PrivateMessage)
                    .where(PrivateMessage.conversation_id == conversation.id)
                    .order_by(PrivateMessage.created_at.desc(), PrivateMessage.id.desc())
                    .limit(1)
                )
            ).scalars().first()
            items.append({
                "id": conversation.id,
                "other_user": conversation.other_user(user_id),
                "last_message": last_message,
                "unread_count": unread.get(conversation.id, 0),
                "updated_at": conversation.updated_at,
            })
        return items

    async def get_or_create_conversation(self, user_id: int, other_user_id: int) -> dict:
        if user_id == other_user_id:
            raise BadRequestError("Vous ne pouvez pas démarrer une conversation avec vous-même")
        other = (await self.db.execute(select(User.id).where(User.id == other_user_id))).scalar_one_or_none()
        if other is None:
            raise NotFoundError("Utilisateur non trouvé")

        user1_id, user2_id = ordered_pair(user_id, other_user_id)
        result = await self.db.execute(
            select(PrivateConversation).where(
                PrivateConversation.user1_id == user1_id,
                PrivateConversation.user2_id == user2_id,
            )
        )
        conversation = result.scalars().first()
        if not conversation:
            conversation = PrivateConversation(user1_id=user1_id, user2_id=user2_id)
            self.db.add(conversation)
            await self.db.commit()
            result = await self.db.execute(
                select(PrivateConversation)
                .where(PrivateConversation.id == conversation.id)
                .execution_options(populate_existing=True)
            )
            conversation = result.scalars().one()
            logger.info(f"💬 Conversation {conversation.id} créée entre {user1_id} et {user2_id}")

        return {
            "id": conversation.id,
            "other_user": conversation.other_user(user_id),
            "created_at": conversation.created_at,
        }

    async def get_messages(self, user_id: int, conversation_id: int, page: int = 1, limit: int = 50) -> List[PrivateMessage]:
        """Page de messages en ordre chronologique ; les messages reçus sont marqués comme lus."""
        await self._get_conversation(conversation_id, user_id)

        result = await self.db.execute(
            select(PrivateMessage)
            .where(PrivateMessage.conversation_id == conversation_id)
            .order_by(PrivateMessage.created_at.desc(), PrivateMessage.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        messages = list(result.scalars().all())

        await self.db.execute(
            update(PrivateMessage)
            .where(
                PrivateMessage.conversation_id == conversation_id,
                PrivateMessage.sender_id != user_id,
                PrivateMessage.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        messages.reverse()
        return messages

    async def send_message(self, sender: User, conversation_id: int, content: str) -> PrivateMessage:
        conversation = await self._get_conversation(conversation_id, sender.id)

        message = PrivateMessage(content=content, conversation_id=conversation_id, sender_id=sender.id)
        self.db.add(message)
        conversation.updated_at = utcnow()
        self.notifications.notify_new_message(conversation.other_user_id(sender.id), sender.display_name)
        await self.db.commit()

        result = await self.db.execute(
            select(PrivateMessage)
            .where(PrivateMessage.id == message.id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    async def delete_conversation(self, user_id: int, conversation_id: int) -> dict:
        await self._get_conversation(conversation_id, user_id)
        await self.db.execute(delete(PrivateConversation).where(PrivateConversation.id == conversation_id))
        await self.db.commit()
        return {"message": "Conversation supprimée"}

    async def update_message(self, user_id: int, message_id: int, content: str) -> PrivateMessage:
        message = await self._get_own_message(message_id, user_id, "modifier")
        message.content = content
        await self.db.commit()
        return message

    async def delete_message(self, user_id: int, message_id: int) -> dict:
        await self._get_own_message(message_id, user_id, "supprimer")
        await self.db.execute(delete(PrivateMessage).where(PrivateMessage.id == message_id))
        await self.db.commit()
        return {"message": "Message supprimé"}

    async def unread_count(self, user_id: int) -> int:
        conversation_ids = select(PrivateConversation.id).where(
            or_(PrivateConversation.user1_id == user_id, PrivateConversation.user2_id == user_id)
        )
        result = await self.db.execute(
            select(func.count(PrivateMessage.id)).where(
                PrivateMessage.conversation_id.in_(conversation_ids),
                PrivateMessage.sender_id != user_id,
                PrivateMessage.is_read.is_(False),
            )
        )
        return result.scalar_one()

    async def get_contacts(self, user: User) -> List[User]:
        """Les administrateurs peuvent écrire à tout le monde, les autres uniquement aux administrateurs."""
        query = select(User).where(User.id != user.id, User.is_active.is_(True))
        if not user.is_admin:
            query = query.where(User.role == Role.ADMIN.value)
        result = await self.db.execute(query.order_by(User.role.asc(), User.first_name.asc(), User.id.asc()))
        return result.scalars().all()
