from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from noken.auth.dependencies import get_current_user
from noken.auth.models import User
from noken.db.session import get_db
from noken.messaging.schemas import (
    ContactOut,
    ConversationOut,
    PrivateMessageCreate,
    PrivateMessageOut,
    StartedConversation,
    UnreadMessages,
)
from noken.messaging.services import MessagingService

router = APIRouter(prefix="/messaging", tags=["messaging"])


def get_messaging_service(db: AsyncSession = Depends(get_db)) -> MessagingService:
    return MessagingService(db)


@router.get("/conversations", response_model=List[ConversationOut])
async def list_conversations(
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return await service.get_conversations(current_user.id)


@router.get("/conversations/{conversation_id}/messages", response_model=List[PrivateMessageOut])
async def list_messages(
    conversation_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return await service.get_messages(current_user.id, conversation_id, page, limit)


@router.post("/conversations/start/{user_id}", response_model=StartedConversation)
async def start_conversation(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return await service.get_or_create_conversation(current_user.id, user_id)


@router.post(
    "/conversations/{conversation_id}/messages",
    status_code=status.HTTP_201_CREATED,
    response_model=PrivateMessageOut,
)
async def send_message(
    conversation_id: int,
    payload: PrivateMessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return await service.send_message(current_user, conversation_id, payload.content)


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: int,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return await service.delete_conversation(current_user.id, conversation_id)


@router.get("/unread-count", response_model=UnreadMessages)
async def unread_count(
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return UnreadMessages(unread_count=await service.unread_count(current_user.id))


@router.get("/contacts", response_model=List[ContactOut])
async def list_contacts(
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return await service.get_contacts(current_user)


@router.post("/messages/{message_id}/update", response_model=PrivateMessageOut)
async def update_message(
    message_id: int,
    payload: PrivateMessageCreate,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return await service.update_message(current_user.id, message_id, payload.content)


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    service: MessagingService = Depends(get_messaging_service),
):
    return await service.delete_message(current_user.id, message_id)
